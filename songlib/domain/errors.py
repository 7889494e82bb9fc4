"""Error taxonomy shared by the service, repository and HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, Optional


class SongLibError(Exception):
    """Base class; carries the HTTP status and wire code used by the routes."""

    status_code = 500
    error_code = "internal_error"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


# --- Client errors ---
class ValidationFailure(SongLibError):
    status_code = 400
    error_code = "invalid_request"
    default_message = "Invalid request"


class InvalidID(ValidationFailure):
    error_code = "invalid_id"
    default_message = "invalid song ID"


class EmptyParameters(ValidationFailure):
    error_code = "empty_parameters"
    default_message = "parameters must not be empty"


class InvalidPagination(ValidationFailure):
    error_code = "invalid_pagination"
    default_message = "page and pageSize must be greater than zero"


class InvalidFilter(ValidationFailure):
    error_code = "invalid_filter"
    default_message = "unsupported filter field"


class InvalidPayload(ValidationFailure):
    error_code = "invalid_payload"
    default_message = "request body is invalid"


class NotFound(SongLibError):
    status_code = 404
    error_code = "not_found"
    default_message = "song not found"


# --- Upstream metadata API ---
class UpstreamFailure(SongLibError):
    status_code = 502
    error_code = "upstream_failure"
    default_message = "failed to fetch data from external API"


class UpstreamUnavailable(UpstreamFailure):
    """Network error, timeout or missing base URL."""


class UpstreamBadRequest(UpstreamFailure):
    default_message = "external API rejected the request"


class UpstreamInternalError(UpstreamFailure):
    default_message = "external API internal error"


class UpstreamStatusError(UpstreamFailure):
    default_message = "unexpected status code from external API"


class UpstreamDecodeError(UpstreamFailure):
    default_message = "failed to decode song info response"


# --- Persistence ---
class StoreFailure(SongLibError):
    status_code = 500
    error_code = "store_failure"
    default_message = "database operation failed"


__all__ = [
    "SongLibError",
    "ValidationFailure",
    "InvalidID",
    "EmptyParameters",
    "InvalidPagination",
    "InvalidFilter",
    "InvalidPayload",
    "NotFound",
    "UpstreamFailure",
    "UpstreamUnavailable",
    "UpstreamBadRequest",
    "UpstreamInternalError",
    "UpstreamStatusError",
    "UpstreamDecodeError",
    "StoreFailure",
]
