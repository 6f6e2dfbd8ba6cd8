"""Error types shared by the client, config loader and suites."""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """An ApostropheCMS API call failed.

    ``status`` is the HTTP status code, or 0 when the request never got
    a response (connection refused, timeout, DNS failure).
    """

    def __init__(self, status: int, message: str, body: Any = None) -> None:
        super().__init__(f"{status} {message}" if status else message)
        self.status = status
        self.message = message
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class ConfigError(Exception):
    """Required configuration is missing or invalid."""
