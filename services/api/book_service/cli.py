"""Command-line access to the recommendation and availability pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from book_service.core.async_utils import run_async
from book_service.core.config import Settings, settings, validate_config
from book_service.domain.errors import (
    CandidateGenerationError,
    InvalidISBNError,
    ProfileNotFoundError,
)
from book_service.domain.isbn import require_isbn13, validate_isbn
from book_service.domain.types import AvailabilityRecord, Format, RecommendationResponse
from book_service.schemas.profiles import ProfileCreate
from book_service.services.availability.registry import build_http_client, build_registry
from book_service.services.availability_cache import get_availability_cache
from book_service.services.orchestrator import OrchestrationOptions, Orchestrator
from book_service.services.profile_store import get_profile_store
from book_service.services.recommendation.generator import build_generator

logger = logging.getLogger(__name__)


def _csv(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    return [p.strip() for p in raw.split(",") if p.strip()]


def _formats(raw: str | None) -> list[Format] | None:
    parts = _csv(raw)
    if parts is None:
        return None
    try:
        return [Format(p.lower()) for p in parts]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _format_price(record: AvailabilityRecord) -> str:
    if record.price is None:
        return "free"
    return f"{record.price:.2f} {record.currency}"


async def _with_orchestrator(cfg: Settings, fn, *, needs_generator: bool):
    client = build_http_client(cfg)
    try:
        orchestrator = Orchestrator(
            build_registry(cfg, client),
            get_availability_cache(),
            build_generator(cfg) if needs_generator else None,
            get_profile_store(),
            cfg,
        )
        return await fn(orchestrator)
    finally:
        await client.aclose()


def _cmd_recommend(args: argparse.Namespace) -> int:
    options = OrchestrationOptions(
        override_interests=_csv(args.interests),
        override_price_ceiling=args.price,
        override_formats=_formats(args.formats),
        skip_cache=args.skip_cache,
    )

    async def _run(o: Orchestrator) -> RecommendationResponse:
        return await o.get_recommendations(args.profile_id, options)

    try:
        result = run_async(_with_orchestrator(settings, _run, needs_generator=True))
    except ProfileNotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except CandidateGenerationError as exc:
        print(f"error: candidate generation failed: {exc}", file=sys.stderr)
        return 1

    if args.json:
        _print_json(result.model_dump(mode="json"))
        return 0

    print(
        f"{len(result.recommendations)} recommendation(s) "
        f"from {result.total_candidates} candidate(s), {result.filtered_count} without a match"
    )
    for i, book in enumerate(result.recommendations, 1):
        best = book.best_option
        print(f"{i:2d}. {book.candidate.title} by {book.candidate.author} ({book.candidate.isbn_13})")
        if best is not None:
            print(f"    {best.source} {best.format.value} {_format_price(best)}  {best.url}")
        print(f"    {book.candidate.reasoning}")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    try:
        isbn = require_isbn13(args.isbn)
    except InvalidISBNError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    formats = _formats(args.formats)

    async def _run(o: Orchestrator) -> list[AvailabilityRecord]:
        return await o.check_isbn_availability(isbn, formats=formats, skip_cache=args.skip_cache)

    records = run_async(_with_orchestrator(settings, _run, needs_generator=False))

    if args.json:
        _print_json({"isbn": isbn, "availability": [r.model_dump(mode="json") for r in records]})
        return 0

    if not records:
        print(f"{isbn}: no availability found")
        return 0
    for r in records:
        stock = "in stock" if r.in_stock else "out of stock"
        print(f"{isbn}: {r.source} {r.format.value} {_format_price(r)} ({stock}, {r.estimated_delivery})")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    result = validate_isbn(args.isbn)
    _print_json(result.model_dump())
    return 0 if result.valid else 1


def _cmd_profile_list(args: argparse.Namespace) -> int:
    profiles = get_profile_store().list()
    if args.json:
        _print_json([p.model_dump(mode="json") for p in profiles])
        return 0
    for p in profiles:
        print(f"{p.id}: {', '.join(p.interests) or '(no interests)'}")
    return 0


def _cmd_profile_get(args: argparse.Namespace) -> int:
    profile = get_profile_store().get(args.profile_id)
    if profile is None:
        print(f"error: Profile not found: {args.profile_id}", file=sys.stderr)
        return 2
    _print_json(profile.model_dump(mode="json"))
    return 0


def _cmd_profile_create(args: argparse.Namespace) -> int:
    profile = get_profile_store().create(
        ProfileCreate(
            id=args.id,
            interests=_csv(args.interests) or [],
            disliked_authors=_csv(args.disliked_authors) or [],
            price_ceiling=args.price,
            formats_accepted=_formats(args.formats),
        )
    )
    _print_json(profile.model_dump(mode="json"))
    return 0


def _cmd_config_show(args: argparse.Namespace) -> int:
    _print_json(settings.public_view())
    return 0


def _cmd_config_validate(args: argparse.Namespace) -> int:
    problems = validate_config(settings)
    if not problems:
        print("Configuration OK")
        return 0
    for problem in problems:
        print(f"- {problem}")
    return 1


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("book_service.main:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="book-service")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    p = subparsers.add_parser("recommend", help="Recommend available books for a stored profile.")
    p.add_argument("profile_id")
    p.add_argument("--interests", help="Comma-separated interests overriding the profile's.")
    p.add_argument("--price", type=float, help="Price ceiling override.")
    p.add_argument("--formats", help="Comma-separated formats override.")
    p.add_argument("--skip-cache", action="store_true")
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=_cmd_recommend)

    p = subparsers.add_parser("check", help="Check availability of one ISBN across sources.")
    p.add_argument("isbn")
    p.add_argument("--formats")
    p.add_argument("--skip-cache", action="store_true")
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=_cmd_check)

    p = subparsers.add_parser("validate", help="Validate an ISBN-10 or ISBN-13.")
    p.add_argument("isbn")
    p.set_defaults(handler=_cmd_validate)

    profile = subparsers.add_parser("profile", help="Manage stored profiles.")
    profile_sub = profile.add_subparsers(dest="profile_command")
    profile_sub.required = True

    p = profile_sub.add_parser("list")
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=_cmd_profile_list)

    p = profile_sub.add_parser("get")
    p.add_argument("profile_id")
    p.set_defaults(handler=_cmd_profile_get)

    p = profile_sub.add_parser("create")
    p.add_argument("--id")
    p.add_argument("--interests")
    p.add_argument("--disliked-authors")
    p.add_argument("--price", type=float)
    p.add_argument("--formats")
    p.set_defaults(handler=_cmd_profile_create)

    config = subparsers.add_parser("config", help="Inspect configuration.")
    config_sub = config.add_subparsers(dest="config_command")
    config_sub.required = True

    p = config_sub.add_parser("show")
    p.set_defaults(handler=_cmd_config_show)

    p = config_sub.add_parser("validate")
    p.set_defaults(handler=_cmd_config_validate)

    p = subparsers.add_parser("serve", help="Run the HTTP API.")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=3002)
    p.set_defaults(handler=_cmd_serve)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
        return 2
