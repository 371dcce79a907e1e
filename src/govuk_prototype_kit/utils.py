"""Small helpers shared across the kit."""

from __future__ import annotations

import logging
from typing import Any

import httpx

__all__ = ["BadResponseError", "QuietLogFilter", "request_https_json"]

# Messages from third-party tools that carry no information for users.
QUIET_MESSAGE_SUFFIXES = ("Deleting expired sessions",)
QUIET_MESSAGE_PREFIXES = ("[notice]",)


class BadResponseError(Exception):
    """Raised when a JSON endpoint answers with a non-2xx status."""

    code = "EBADRESPONSE"

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Bad response from [{url}]")


def request_https_json(url: str, timeout: float = 30.0) -> Any:
    """GET *url* and return the decoded JSON body."""
    response = httpx.get(url, timeout=timeout, follow_redirects=True)
    if response.status_code < 200 or response.status_code >= 300:
        raise BadResponseError(url, response.status_code)
    return response.json()


class QuietLogFilter(logging.Filter):
    """Drop cosmetic chatter relayed from third-party tools.

    pip prints ``[notice]`` banners about its own upgrades and session
    stores log every expiry sweep. Neither affects what the user should do.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage().strip()
        if message.endswith(QUIET_MESSAGE_SUFFIXES):
            return False
        if message.startswith(QUIET_MESSAGE_PREFIXES):
            return False
        return True
