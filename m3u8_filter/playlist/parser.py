"""Structural parser that splits a media playlist into headers and segments."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from ..models import ParsedPlaylist, PlaylistHeaders, Segment, TagLine

EXTINF_TAG = "#EXTINF:"
MAP_TAG = "#EXT-X-MAP:"
KEY_TAG = "#EXT-X-KEY:"
DISCONTINUITY_TAG = "#EXT-X-DISCONTINUITY"
TARGET_DURATION_TAG = "#EXT-X-TARGETDURATION:"
MEDIA_SEQUENCE_TAG = "#EXT-X-MEDIA-SEQUENCE:"

# how many leading lines may hold the primary header block
HEADER_WINDOW = 10

_DURATION_RE = re.compile(r"^#EXTINF:\s*(\d+(?:\.\d+)?|\.\d+)")
URI_ATTR_RE = re.compile(r'URI="([^"]+)"')


def is_discontinuity(line: str) -> bool:
    return line == DISCONTINUITY_TAG


def extract_uri_attribute(line: str) -> Optional[str]:
    match = URI_ATTR_RE.search(line)
    return match.group(1) if match else None


def _is_header_candidate(line: str) -> bool:
    return (
        line.startswith("#EXT")
        and not line.startswith(EXTINF_TAG)
        and not line.startswith(MAP_TAG)
        and not is_discontinuity(line)
    )


def _next_content_line(lines: List[str], start: int) -> Optional[int]:
    for position in range(start, len(lines)):
        if lines[position]:
            return position
    return None


def parse_playlist(text: str) -> ParsedPlaylist:
    """
    Split playlist text into the primary header block, auxiliary tag lines and
    an ordered list of segments. Malformed segments are skipped, never fatal.
    """
    lines = [raw.strip() for raw in text.split("\n")] if text else []
    headers = PlaylistHeaders()
    segments: List[Segment] = []

    pending_discontinuity: Optional[TagLine] = None
    pending_map: Optional[TagLine] = None
    in_header_block = True
    position = 0

    while position < len(lines):
        line = lines[position]
        if not line:
            position += 1
            continue

        if in_header_block:
            if position < HEADER_WINDOW and _is_header_candidate(line):
                headers.primary.append(TagLine(line_number=position, text=line))
                position += 1
                continue
            in_header_block = False

        if line.startswith(MAP_TAG):
            pending_map = TagLine(line_number=position, text=line)
            position += 1
            continue

        if is_discontinuity(line):
            pending_discontinuity = TagLine(line_number=position, text=line)
            position += 1
            continue

        if line.startswith(EXTINF_TAG):
            uri_position = _next_content_line(lines, position + 1)
            match = _DURATION_RE.match(line)
            if uri_position is None or lines[uri_position].startswith("#"):
                logging.warning("Skipping #EXTINF without segment URI at line %s", position + 1)
                position += 1
                continue
            if match is None:
                logging.warning("Skipping segment with unparsable duration: %s", line)
                position = uri_position + 1
                continue

            attached = [tag for tag in (pending_discontinuity, pending_map) if tag is not None]
            attached.sort(key=lambda tag: tag.line_number)
            segments.append(
                Segment(
                    index=len(segments),
                    duration_seconds=float(match.group(1)),
                    uri=lines[uri_position],
                    has_discontinuity=pending_discontinuity is not None,
                    map_uri=extract_uri_attribute(pending_map.text) if pending_map else None,
                    raw_span=(position, uri_position),
                    raw_text="\n".join(lines[position : uri_position + 1]),
                    attached_lines=attached,
                )
            )
            pending_discontinuity = None
            pending_map = None
            position = uri_position + 1
            continue

        if line.startswith("#"):
            headers.auxiliary.append(TagLine(line_number=position, text=line))
        position += 1

    return ParsedPlaylist(lines=lines, segments=segments, headers=headers)
