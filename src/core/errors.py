"""Error taxonomy for the migration.

Why a single hierarchy:
- The CLI only needs to catch `MigrationError` to report and exit non-zero.
- Each error carries the context needed for post-mortem debugging, since there
  is no retry layer that could hide a transient failure.
"""

from __future__ import annotations

import json
from typing import Any


class MigrationError(Exception):
    """Base class for every failure that aborts a migration run."""


class ConfigError(MigrationError):
    """The configuration file is missing, unreadable or invalid."""


class AuthenticationError(MigrationError):
    """Token exchange against a UAA instance failed."""

    def __init__(self, status_code: int | str = "unknown", *, auth_url: str | None = None) -> None:
        self.status_code = status_code
        self.auth_url = auth_url
        super().__init__(
            f"Error retrieving token. Response returned status code {status_code}"
        )


def _dump(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


class RequestError(MigrationError):
    """A views API call returned a non-2xx status or failed in transport."""

    def __init__(
        self,
        *,
        url: str,
        method: str,
        zone_id: str,
        body: Any = None,
        status_code: int | str = "unknown",
        response_body: Any = None,
    ) -> None:
        self.url = url
        self.method = method
        self.zone_id = zone_id
        self.body = body
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(
            f"Request {url}\n"
            f"Method: {method}\n"
            f"Zone ID: {zone_id}\n"
            f"Body: {_dump(body)}\n"
            f"Status code: {status_code}\n"
            f"Response body: {_dump(response_body)}"
        )


class UnexpectedPayloadError(RequestError):
    """A collection endpoint answered 2xx with something other than a JSON array."""


class IdMappingError(MigrationError):
    """An origin id has no known counterpart at the destination."""

    def __init__(self, kind: str, origin_id: str) -> None:
        self.kind = kind
        self.origin_id = origin_id
        super().__init__(f"No destination {kind} found for origin id {origin_id}")


class AggregateBulkError(MigrationError):
    """One or more fanned-out per-item operations failed.

    Only the first observed failure is kept (`first_error`, also chained as
    `__cause__`); the rest are counted, not collected.
    """

    def __init__(self, first_error: BaseException, *, failed: int, total: int) -> None:
        self.first_error = first_error
        self.failed = failed
        self.total = total
        super().__init__(f"{failed} of {total} bulk operations failed. First failure:\n{first_error}")


class InvalidItemError(MigrationError):
    """A card or deck returned by the service lacks the fields the migration reads."""

    def __init__(self, kind: str, item: Any, detail: str) -> None:
        self.kind = kind
        self.item = item
        super().__init__(f"Malformed {kind} {_dump(item)}:\n{detail}")
