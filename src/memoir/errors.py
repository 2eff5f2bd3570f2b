"""Error types shared by the store, the gateway and the HTTP layer."""

from __future__ import annotations


class MemoirError(Exception):
    """Base error. Carries the HTTP status the API layer should answer with."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MemoirError):
    """Malformed id, body or upload."""

    status = 400


class NotFoundError(MemoirError):
    """Unknown project, memory, chapter or action."""

    status = 404
