"""Typed API errors.

Every error carries a message and the HTTP status it maps to. The HTTP layer
renders them as ``{"success": false, "error": message}``.
"""
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base exception for every classified failure.

    Attributes:
        message: Human-readable message returned to the client
        status_code: HTTP status code
    """

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to the response envelope."""
        return {"success": False, "error": self.message}


class ValidationError(ApiError):
    """Malformed or missing request fields."""
    status_code = 400


class AuthenticationError(ApiError):
    """Missing or invalid bearer credential."""
    status_code = 401


class AuthorizationError(ApiError):
    """Authenticated, but the role is insufficient."""
    status_code = 403


class NotFoundError(ApiError):
    """Entity does not exist."""
    status_code = 404


class ConflictError(ApiError):
    """Duplicate value for a unique field (e.g. email)."""
    status_code = 409


class UpstreamError(ApiError):
    """Identity provider or marketplace API failure."""
    status_code = 500


class InternalError(ApiError):
    """Unexpected failure."""
    status_code = 500


@contextmanager
def classified(action: str, error_cls: type = InternalError):
    """Pass ApiErrors through; re-raise anything else as ``error_cls``.

    Usage:
        with classified("creating user"):
            store.put(...)
    """
    try:
        yield
    except ApiError:
        raise
    except Exception as exc:
        logger.error("Error %s: %s", action, exc)
        raise error_cls(f"Error {action}: {exc}") from exc
