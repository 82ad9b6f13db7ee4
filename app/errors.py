"""
Movie Facts — Domain errors

Raised by the stores and the fact generator, translated to HTTP status
codes by the route handlers in app.main.
"""

from __future__ import annotations


class MovieFactsError(Exception):
    """Base class for all application errors."""


class InvalidTitleError(MovieFactsError, ValueError):
    """A movie title was missing, not a string, or blank."""


class UserNotFoundError(MovieFactsError, LookupError):
    """The referenced user does not exist in the preference store."""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class UpstreamError(MovieFactsError):
    """An external service failed or returned an unusable payload."""


def clean_title(title: object) -> str:
    """Return the trimmed title, or raise InvalidTitleError."""
    if not isinstance(title, str) or not title.strip():
        raise InvalidTitleError("Movie title is required")
    return title.strip()
