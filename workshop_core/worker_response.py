"""Response tuple shared by both functions, the cache and the error types."""

import json
from typing import NamedTuple, Optional

JSON_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Content-Type': 'application/json',
}


class WorkerResponse(NamedTuple):
    """
    A `(body, status, headers)` tuple.

    Flask unpacks a 3-tuple returned from a view, so a WorkerResponse can be
    handed straight back from a functions_framework entry point.
    """

    body: str
    status: int
    headers: dict

    def with_headers(self, extra: dict) -> 'WorkerResponse':
        headers = dict(self.headers)
        headers.update(extra)
        return WorkerResponse(self.body, self.status, headers)

    def copy(self) -> 'WorkerResponse':
        return WorkerResponse(self.body, self.status, dict(self.headers))


def json_response(data, status: int = 200, headers: Optional[dict] = None) -> WorkerResponse:
    return WorkerResponse(json.dumps(data), status, dict(headers or JSON_HEADERS))


def error_response(message: str, status: int, headers: Optional[dict] = None, **extra) -> WorkerResponse:
    """Small JSON error body: {"error": message, ...extra}."""
    body = {'error': message}
    body.update(extra)
    return json_response(body, status, headers)
