from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from book_service.domain.types import AvailabilityRecord, Format, RateLimit
from book_service.services.availability.base import RateLimitedAdapter
from book_service.services.availability.rate_limit import RateLimiter
from book_service.services.availability.retry import RetryPolicy

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

_NO_RESULTS = re.compile(r"No results found|\b0 Results\b|did not match any products")
OUT_OF_STOCK_MARKERS = ("Out of Stock", "Currently Unavailable")

# Applied to the raw HTML (attributes and embedded JSON).
_RAW_PRICE_PATTERNS = [
    re.compile(r'data-price="(\d+(?:\.\d+)?)"'),
    re.compile(r'"price":\s*"?\$?(\d+(?:\.\d+)?)"?'),
]
# Applied to visible text.
_TEXT_PRICE_PATTERNS = [
    re.compile(r"\$(\d+(?:\.\d+)?)\s*(?:Used|New)\b", re.IGNORECASE),
    re.compile(r"From\s*\$(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"Starting at\s*\$(\d+(?:\.\d+)?)", re.IGNORECASE),
]
_PRICE_CLASS = re.compile(r"price", re.IGNORECASE)
_PRODUCT_LINK_CLASS = re.compile(r"title|product", re.IGNORECASE)
_MONEY = re.compile(r"\$?\s*(\d+(?:\.\d+)?)")

MAX_SANE_PRICE = 1000.0


def _sane(price: float) -> bool:
    return 0 < price < MAX_SANE_PRICE


def extract_lowest_price(html: str, soup: BeautifulSoup) -> float | None:
    candidates: list[float] = []

    for pattern in _RAW_PRICE_PATTERNS:
        candidates.extend(float(m) for m in pattern.findall(html))

    text = soup.get_text(" ", strip=True)
    for pattern in _TEXT_PRICE_PATTERNS:
        candidates.extend(float(m) for m in pattern.findall(text))

    for el in soup.find_all(class_=_PRICE_CLASS):
        m = _MONEY.search(el.get_text(" ", strip=True))
        if m:
            candidates.append(float(m.group(1)))

    sane = [p for p in candidates if _sane(p)]
    return min(sane) if sane else None


def detect_format(text: str) -> Format:
    lowered = text.lower()
    # used books default to paperback
    if "hardcover" in lowered and "paperback" not in lowered:
        return Format.hardcover
    return Format.paperback


def parse_search_page(
    html: str, isbn: str, *, source: str, base_url: str
) -> AvailabilityRecord | None:
    """Turn a Thriftbooks search results page into an availability record.

    Returns None when the page shows no matching product.
    """
    soup = BeautifulSoup(html, "html.parser")
    text = soup.get_text(" ", strip=True)

    if _NO_RESULTS.search(text):
        return None

    fmt = detect_format(text)

    link = soup.find("a", class_=_PRODUCT_LINK_CLASS, href=True)
    if link is not None:
        url = urljoin(base_url + "/", str(link["href"]))
    else:
        url = f"{base_url}/browse/?b.search={isbn}"

    price = extract_lowest_price(html, soup)
    if price is not None:
        return AvailabilityRecord(
            source=source,
            format=fmt,
            price=price,
            currency="USD",
            url=url,
            estimated_delivery="3-5 days",
            in_stock=True,
        )

    if any(marker in text for marker in OUT_OF_STOCK_MARKERS):
        return AvailabilityRecord(
            source=source,
            format=fmt,
            price=None,
            currency="USD",
            url=url,
            estimated_delivery="unknown",
            in_stock=False,
        )

    return None


class ThriftbooksAdapter(RateLimitedAdapter):
    """Cheap used physical books, scraped from the public search page.

    Thriftbooks has no public API; markup changes will surface as None
    results rather than errors.
    """

    name = "thriftbooks"
    # be respectful with scraping
    rate_limit = RateLimit(requests_per_minute=30)

    BASE_URL = "https://www.thriftbooks.com"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str | None = None,
        limiter: RateLimiter | None = None,
        retry: RetryPolicy | None = None,
    ):
        super().__init__(client, limiter=limiter, retry=retry)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def supports_format(self, format: Format) -> bool:
        return format in (Format.paperback, Format.hardcover)

    async def check(self, isbn: str) -> AvailabilityRecord | None:
        await self.limiter.acquire()

        resp = await self._get(
            f"{self.base_url}/browse/",
            params={"b.search": isbn},
            headers=BROWSER_HEADERS,
        )
        record = parse_search_page(
            resp.text, isbn, source=self.name, base_url=self.base_url
        )
        if record is None:
            logger.debug("[%s] no listing for %s", self.name, isbn)
        return record
