from __future__ import annotations


class InvalidISBNError(ValueError):
    """Raised when user-supplied ISBN input fails validation."""

    def __init__(self, isbn: str, reason: str | None):
        self.isbn = isbn
        self.reason = reason or "Invalid ISBN"
        super().__init__(f"Invalid ISBN {isbn!r}: {self.reason}")


class SourceError(RuntimeError):
    """Raised by a source adapter when a lookup fails for transport or parse reasons.

    An ordinary "not found" is never an error; adapters return None for that.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"[{source}] {message}")


class CandidateGenerationError(RuntimeError):
    """Raised when the candidate generator is unconfigured or its output is unusable."""


class ProfileNotFoundError(LookupError):
    def __init__(self, profile_id: str):
        self.profile_id = profile_id
        super().__init__(f"Profile not found: {profile_id}")
