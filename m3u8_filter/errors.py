"""Exceptions raised while turning an origin playlist into a proxied one."""

from __future__ import annotations

from typing import Optional


class PlaylistProcessingError(Exception):
    """Base class for request-level failures of the playlist pipeline."""


class FetchFailure(PlaylistProcessingError):
    """Raised when the origin (or the upstream proxy) cannot deliver content."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class RecursionExceeded(PlaylistProcessingError):
    """Raised when a master playlist chain is longer than the configured bound."""


class NoVariantFound(PlaylistProcessingError):
    """Raised when a master playlist does not reference any variant stream."""
