"""
Exceptions raised while checking a site.
"""
from __future__ import annotations


class LinkCheckError(Exception):
    """Base class for all link checker errors."""


class NetworkError(LinkCheckError):
    """Static fetch failed before a response was received."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class RenderError(LinkCheckError):
    """Browser could not produce a rendered DOM for a URL."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class RenderTimeoutError(RenderError):
    """Rendered page did not settle before the navigation timeout."""


class InvalidURLError(LinkCheckError, ValueError):
    """A reference could not be parsed as an absolute web URL."""
