"""Pydantic models describing a parsed HLS media playlist."""

from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class TagLine(BaseModel):
    """A single tag line together with its position in the source text."""

    line_number: int
    text: str


class Segment(BaseModel):
    """One media segment reference within a media playlist."""

    index: int
    duration_seconds: float = Field(ge=0)
    uri: str
    has_discontinuity: bool = False
    map_uri: Optional[str] = None
    raw_span: Tuple[int, int]
    raw_text: str
    attached_lines: List[TagLine] = Field(default_factory=list)
    ad_score: float = Field(default=0.0, ge=0, le=1)
    is_ad: bool = False


class PlaylistHeaders(BaseModel):
    """Top-level tag lines of a playlist that are not part of any segment."""

    primary: List[TagLine] = Field(default_factory=list)
    auxiliary: List[TagLine] = Field(default_factory=list)

    def find(self, prefix: str) -> Optional[TagLine]:
        for tag in self.primary + self.auxiliary:
            if tag.text.startswith(prefix):
                return tag
        return None

    def by_line_number(self) -> dict:
        return {tag.line_number: tag.text for tag in self.primary + self.auxiliary}


class ParsedPlaylist(BaseModel):
    """Structured view of one playlist body, ready for filtering and rebuilding."""

    lines: List[str]
    segments: List[Segment] = Field(default_factory=list)
    headers: PlaylistHeaders = Field(default_factory=PlaylistHeaders)


class SegmentStatistics(BaseModel):
    """Duration statistics computed once per filtering pass."""

    model_config = ConfigDict(frozen=True)

    mean_duration: float
    std_dev: float
    p10: float
    p90: float
    segment_count: int
    total_duration: float
    min_duration: float
    max_duration: float
