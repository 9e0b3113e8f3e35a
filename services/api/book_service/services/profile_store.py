from __future__ import annotations

import json
import logging
import re
import secrets
import string
import time
from functools import lru_cache
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from book_service.core.config import Settings, settings
from book_service.domain.errors import ProfileNotFoundError
from book_service.domain.types import UserProfile
from book_service.schemas.profiles import ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_ID_ALPHABET = string.ascii_lowercase + string.digits


def sanitize_profile_id(profile_id: str) -> str:
    return _UNSAFE_ID_CHARS.sub("", profile_id)


def generate_profile_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


class ProfileStore:
    """User profiles stored as one pretty-printed JSON file per id."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        cfg: Settings | None = None,
        id_factory: Callable[[], str] = generate_profile_id,
    ):
        self.data_dir = Path(data_dir)
        self._cfg = cfg or settings
        self._id_factory = id_factory

    def _path(self, profile_id: str) -> Path:
        return self.data_dir / f"{sanitize_profile_id(profile_id)}.json"

    def _write(self, profile: UserProfile) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._path(profile.id).write_text(
            profile.model_dump_json(indent=2), encoding="utf-8"
        )

    def _require(self, profile_id: str) -> UserProfile:
        profile = self.get(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def create(self, payload: ProfileCreate) -> UserProfile:
        profile_id = sanitize_profile_id(payload.id or "") or self._id_factory()
        profile = UserProfile(
            id=profile_id,
            interests=payload.interests,
            previously_read=payload.previously_read,
            disliked_authors=payload.disliked_authors,
            price_ceiling=(
                payload.price_ceiling
                if payload.price_ceiling is not None
                else self._cfg.price_ceiling_default
            ),
            formats_accepted=payload.formats_accepted or list(self._cfg.formats_default),
            currency=payload.currency or "USD",
        )
        self._write(profile)
        logger.info("Created profile %s", profile.id)
        return profile

    def get(self, profile_id: str) -> UserProfile | None:
        path = self._path(profile_id)
        if not path.is_file():
            return None
        try:
            return UserProfile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.error("Failed to read profile file %s: %s", path.name, exc)
            return None

    def update(self, profile_id: str, changes: ProfileUpdate) -> UserProfile:
        existing = self._require(profile_id)
        # id is never part of the update
        updated = existing.model_copy(update=changes.model_dump(exclude_unset=True, exclude_none=True))
        self._write(updated)
        return updated

    def delete(self, profile_id: str) -> bool:
        path = self._path(profile_id)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("Deleted profile %s", profile_id)
        return True

    def list(self) -> list[UserProfile]:
        if not self.data_dir.is_dir():
            return []

        profiles: list[UserProfile] = []
        for path in sorted(self.data_dir.glob("*.json")):
            try:
                profiles.append(
                    UserProfile.model_validate_json(path.read_text(encoding="utf-8"))
                )
            except (OSError, ValidationError) as exc:
                logger.error("Failed to parse profile file %s: %s", path.name, exc)
        return profiles

    def add_to_reading_history(self, profile_id: str, isbn: str) -> UserProfile:
        profile = self._require(profile_id)
        if isbn in profile.previously_read:
            return profile
        return self._save_field(profile, "previously_read", [*profile.previously_read, isbn])

    def add_interest(self, profile_id: str, interest: str) -> UserProfile:
        profile = self._require(profile_id)
        value = interest.strip().lower()
        if value in profile.interests:
            return profile
        return self._save_field(profile, "interests", [*profile.interests, value])

    def remove_interest(self, profile_id: str, interest: str) -> UserProfile:
        profile = self._require(profile_id)
        value = interest.strip().lower()
        if value not in profile.interests:
            return profile
        return self._save_field(
            profile, "interests", [i for i in profile.interests if i != value]
        )

    def add_disliked_author(self, profile_id: str, author: str) -> UserProfile:
        profile = self._require(profile_id)
        value = author.strip()
        if value in profile.disliked_authors:
            return profile
        return self._save_field(
            profile, "disliked_authors", [*profile.disliked_authors, value]
        )

    def _save_field(self, profile: UserProfile, field: str, value: list[str]) -> UserProfile:
        updated = profile.model_copy(update={field: value})
        self._write(updated)
        return updated


@lru_cache
def get_profile_store() -> ProfileStore:
    return ProfileStore(settings.profiles_dir)
