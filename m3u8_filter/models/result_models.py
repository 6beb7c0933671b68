"""Models describing what the processor hands back to its caller."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class FetchResult(BaseModel):
    """Body and metadata returned by the fetch collaborator."""

    body: str
    content_type: str = ""
    status_code: int = 200
    final_url: str


class ResultKind(str, Enum):
    PLAYLIST = "playlist"
    REDIRECT = "redirect"


class PlaylistResult(BaseModel):
    """Either a rewritten playlist body or a redirect instruction."""

    kind: ResultKind
    body: Optional[str] = None
    location: Optional[str] = None
    from_cache: bool = False

    @classmethod
    def playlist(cls, body: str, from_cache: bool = False) -> "PlaylistResult":
        return cls(kind=ResultKind.PLAYLIST, body=body, from_cache=from_cache)

    @classmethod
    def redirect(cls, location: str) -> "PlaylistResult":
        return cls(kind=ResultKind.REDIRECT, location=location)
