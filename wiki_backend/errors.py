"""Error taxonomy for wiki operations.

Every error carries the HTTP status the API layer should answer with, so
route handlers stay thin and only translate.
"""
from __future__ import annotations


class WikiError(Exception):
    """Base exception for wiki operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WikiError):
    """Malformed request, home page violation or self-move."""

    status_code = 400


class AuthError(WikiError):
    """Missing session or role below the requirement."""

    status_code = 401


class NotFoundError(WikiError):
    """Source document or category does not exist."""

    status_code = 404


class ConflictError(WikiError):
    """Target location is already occupied."""

    status_code = 409


class InternalError(WikiError):
    """Unexpected filesystem or runtime failure."""

    status_code = 500
