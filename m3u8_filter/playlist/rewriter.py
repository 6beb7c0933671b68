"""Line-by-line playlist rewriting and reassembly after segment removal."""

from __future__ import annotations

import math
from typing import Dict, List

from ..models import ParsedPlaylist, PlaylistHeaders, RewriteContext, Segment, TagLine
from .parser import (
    EXTINF_TAG,
    KEY_TAG,
    MAP_TAG,
    MEDIA_SEQUENCE_TAG,
    TARGET_DURATION_TAG,
    URI_ATTR_RE,
    is_discontinuity,
)
from .url_resolver import proxy_wrap, resolve_url


def _rewrite_uri_attribute(line: str, ctx: RewriteContext) -> str:
    def _substitute(match) -> str:
        absolute = resolve_url(ctx.base_url, match.group(1))
        return f'URI="{proxy_wrap(absolute, ctx.segment_proxy)}"'

    return URI_ATTR_RE.sub(_substitute, line, count=1)


def rewrite_playlist(text: str, ctx: RewriteContext) -> str:
    """
    Rewrite every key, map and segment reference of a media playlist so that
    clients fetch them through the segment proxy. Line order is preserved.
    """
    output: List[str] = []
    next_line_is_segment = False

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if ctx.filter_discontinuity and is_discontinuity(line):
            continue
        if line.startswith(KEY_TAG) or line.startswith(MAP_TAG):
            output.append(_rewrite_uri_attribute(line, ctx))
            continue
        if line.startswith(EXTINF_TAG):
            next_line_is_segment = True
            output.append(line)
            continue
        if next_line_is_segment and not line.startswith("#"):
            absolute = resolve_url(ctx.base_url, line)
            output.append(proxy_wrap(absolute, ctx.segment_proxy))
            next_line_is_segment = False
            continue
        output.append(line)

    return "\n".join(output)


def update_headers(headers: PlaylistHeaders, kept: List[Segment]) -> None:
    """Re-derive target duration and media sequence once segments were dropped."""

    if not kept:
        return

    target = headers.find(TARGET_DURATION_TAG)
    if target is not None:
        longest = max(segment.duration_seconds for segment in kept)
        target.text = f"{TARGET_DURATION_TAG}{math.ceil(longest)}"

    first_index = kept[0].index
    sequence = headers.find(MEDIA_SEQUENCE_TAG)
    if first_index > 0 and sequence is not None:
        sequence.text = f"{MEDIA_SEQUENCE_TAG}{first_index}"


def _tag_kind(tag: TagLine) -> str:
    return MAP_TAG if tag.text.startswith(MAP_TAG) else tag.text


def rebuild_playlist(parsed: ParsedPlaylist, kept: List[Segment]) -> str:
    """
    Reassemble playlist text keeping only ``kept`` segments. Every line that
    does not belong to a removed segment stays where it was.
    """
    kept_indexes = {segment.index for segment in kept}
    dropped_lines = set()
    inserted: Dict[int, List[str]] = {}
    carried: Dict[str, TagLine] = {}

    for segment in parsed.segments:
        if segment.index in kept_indexes:
            if carried:
                own_kinds = {_tag_kind(tag) for tag in segment.attached_lines}
                extra = [tag for kind, tag in carried.items() if kind not in own_kinds]
                extra.sort(key=lambda tag: tag.line_number)
                first_line = min(
                    [tag.line_number for tag in segment.attached_lines] + [segment.raw_span[0]]
                )
                inserted[first_line] = [tag.text for tag in extra]
                carried = {}
            continue

        start, end = segment.raw_span
        dropped_lines.update(range(start, end + 1))
        for tag in segment.attached_lines:
            dropped_lines.add(tag.line_number)
            carried[_tag_kind(tag)] = tag

    update_headers(parsed.headers, kept)
    header_text = parsed.headers.by_line_number()

    output: List[str] = []
    for line_number, line in enumerate(parsed.lines):
        output.extend(inserted.get(line_number, []))
        if not line or line_number in dropped_lines:
            continue
        output.append(header_text.get(line_number, line))
    return "\n".join(output)
