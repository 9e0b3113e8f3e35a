from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

from book_service.core.config import Settings
from book_service.domain.errors import CandidateGenerationError
from book_service.domain.isbn import validate_isbn
from book_service.domain.types import BookCandidate, UserProfile
from book_service.services.recommendation.prompts import (
    RECOMMEND_BOOKS,
    render_recommendation_prompt,
)

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")

DEFAULT_REASONING = "Matches user interests"


class CandidateGenerator(Protocol):
    async def generate(
        self, profile: UserProfile, candidate_count: int
    ) -> list[BookCandidate]: ...


def _strip_code_fence(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        m = _CODE_FENCE.search(s)
        if m:
            return m.group(1).strip()
    return s


def parse_candidates(text: str) -> list[BookCandidate]:
    """Parse model output into validated candidates.

    The output must be a JSON array (optionally wrapped in a markdown code
    fence). Items that are not objects, lack a string title/author/isbn_13,
    or carry an ISBN that fails validation are skipped with a warning.
    """
    try:
        parsed: Any = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise CandidateGenerationError(f"Failed to parse model response as JSON: {exc}") from exc

    if not isinstance(parsed, list):
        raise CandidateGenerationError("Model response is not a JSON array")

    out: list[BookCandidate] = []
    for item in parsed:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object item in model response: %r", item)
            continue

        title, author, isbn_13 = item.get("title"), item.get("author"), item.get("isbn_13")
        if not (isinstance(title, str) and isinstance(author, str) and isinstance(isbn_13, str)):
            logger.warning("Skipping item with missing required fields: %r", item)
            continue

        validation = validate_isbn(isbn_13)
        if not validation.valid or validation.isbn_13 is None:
            logger.warning("Skipping %r with invalid ISBN: %s", title, validation.error)
            continue

        isbn_10 = item.get("isbn_10")
        year = item.get("publication_year")
        reasoning = item.get("reasoning")

        out.append(
            BookCandidate(
                title=title,
                author=author,
                isbn_13=validation.isbn_13,
                isbn_10=isbn_10 if isinstance(isbn_10, str) else validation.isbn_10,
                publication_year=(
                    year
                    if isinstance(year, int) and not isinstance(year, bool)
                    else datetime.now(timezone.utc).year
                ),
                reasoning=reasoning if isinstance(reasoning, str) else DEFAULT_REASONING,
            )
        )

    return out


class OpenAICandidateGenerator:
    """Candidate generator using the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        *,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if client is None and not api_key:
            raise CandidateGenerationError("OpenAI API key is not configured")
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model

    async def generate(
        self, profile: UserProfile, candidate_count: int
    ) -> list[BookCandidate]:
        prompt = render_recommendation_prompt(profile, candidate_count)
        logger.info(
            "OpenAI request: model=%s, candidates=%d", self._model, candidate_count
        )
        try:
            resp = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": prompt["system"]},
                    {"role": "user", "content": prompt["user"]},
                ],
                temperature=RECOMMEND_BOOKS.temperature,
                max_tokens=RECOMMEND_BOOKS.max_tokens,
            )
        except OpenAIError as exc:
            raise CandidateGenerationError(f"OpenAI request failed: {exc}") from exc

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise CandidateGenerationError("Empty response from OpenAI")

        candidates = parse_candidates(content)
        logger.info("OpenAI returned %d valid candidates", len(candidates))
        return candidates


def build_generator(cfg: Settings) -> CandidateGenerator:
    if cfg.llm_provider == "openai":
        return OpenAICandidateGenerator(cfg.openai_api_key, cfg.llm_model)
    raise CandidateGenerationError(f"Unsupported LLM provider: {cfg.llm_provider}")
