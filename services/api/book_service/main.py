from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from book_service.api.router import api_router
from book_service.core.config import settings, validate_config
from book_service.core.otel import init_otel
from book_service.domain.errors import (
    CandidateGenerationError,
    InvalidISBNError,
    ProfileNotFoundError,
)
from book_service.middleware.request_id import RequestIdMiddleware
from book_service.services.availability.registry import get_http_client, get_registry
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    problems = validate_config(settings)
    if problems:
        logger.warning("Configuration warnings:")
        for problem in problems:
            logger.warning("  - %s", problem)

    logger.info("Enabled sources: %s", ", ".join(settings.enabled_sources))
    logger.info("Registered adapters: %s", ", ".join(get_registry().names()))
    yield
    await get_http_client().aclose()


app = FastAPI(title=settings.api_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(InvalidISBNError)
async def invalid_isbn_handler(request: Request, exc: InvalidISBNError):
    return JSONResponse(status_code=400, content={"detail": f"Invalid ISBN: {exc.reason}"})


@app.exception_handler(ProfileNotFoundError)
async def profile_not_found_handler(request: Request, exc: ProfileNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(CandidateGenerationError)
async def candidate_generation_handler(request: Request, exc: CandidateGenerationError):
    logger.error("Candidate generation failed: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


app.include_router(api_router)

init_otel(app)
