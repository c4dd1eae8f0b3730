"""
Error taxonomy for the workshop metadata functions.

Severity by class:
  - ClientInputError → 4xx, returned before any upstream call is made.
  - UpstreamError    → 502, the structured API answered badly.
  - anything else    → 500 with a generic message (see CachingResponder).

A missing or unreadable item page is not an error at all: the gateway
returns an unavailable PageFetch and the pipeline carries on with API data.
"""

from typing import Optional

from .worker_response import WorkerResponse, error_response


class WorkshopError(Exception):
    """Base exception for all errors surfaced to callers."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self, headers: Optional[dict] = None) -> WorkerResponse:
        return error_response(self.message, self.status_code, headers)


class ClientInputError(WorkshopError):
    """Malformed, empty or missing request input."""

    status_code = 400


class MethodNotAllowedError(ClientInputError):
    status_code = 405


class NotFoundError(ClientInputError):
    """Unknown route, or an item the structured API does not know."""

    status_code = 404


class UpstreamError(WorkshopError):
    """Non-success status or malformed envelope from the structured API."""

    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.upstream_status = upstream_status  # None when the body, not the status, was bad

    def to_response(self, headers: Optional[dict] = None) -> WorkerResponse:
        if self.upstream_status is None:
            return error_response(self.message, self.status_code, headers)
        return error_response(
            self.message, self.status_code, headers,
            upstream_status=self.upstream_status
        )
