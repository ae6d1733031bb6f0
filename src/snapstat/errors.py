"""Exceptions raised while scraping Elasticsearch."""

from __future__ import annotations

from typing import Optional


class SnapstatError(Exception):
    """Base class for scrape failures."""


class FetchError(SnapstatError):
    """The request failed or came back with a non-200 status."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class ParseError(SnapstatError):
    """The body was not valid JSON, or not the shape we expected."""

    def __init__(self, url: str, message: str):
        super().__init__(f"failed to decode response from {url}: {message}")
        self.url = url
