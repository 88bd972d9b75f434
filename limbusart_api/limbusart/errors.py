from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base error. Carries the HTTP status the API layer should answer with."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ParseError(AppError):
    """A registry line is not a URL, or points at a site we cannot resolve."""

    status_code = 400


class ResolutionError(AppError):
    """A source URL could not be turned into a direct image link."""

    status_code = 502
