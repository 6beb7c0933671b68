"""Statistical ad-segment detection for media playlists.

Every segment gets a score in [0, 1] built from three signals:

* duration abnormality (weight 0.6): ``min(1, z / 3)`` where ``z`` is the
  segment's absolute z-score against the playlist's durations,
* position abnormality (weight 0.3): short segments (below the 10th
  percentile) at the very start or end of the playlist,
* discontinuity (weight 0.1): the segment follows a discontinuity marker.

A segment whose score exceeds ``AD_SCORE_THRESHOLD`` is flagged as an ad, and
it is removed when the score also beats a threshold that adapts to how much
the durations vary. The result is a heuristic, not ground truth.
"""

from __future__ import annotations

import logging
import math
import re
from typing import List, Optional

from ..models import Segment, SegmentStatistics
from .parser import parse_playlist
from .rewriter import rebuild_playlist

AD_SCORE_THRESHOLD = 0.65

DURATION_WEIGHT = 0.6
POSITION_WEIGHT = 0.3
DISCONTINUITY_WEIGHT = 0.1

LEADING_SHORT_FACTOR = 0.8
TRAILING_SHORT_FACTOR = 0.5
DISCONTINUITY_FACTOR = 0.3

# segments considered "at the start" of a playlist
EDGE_SEGMENTS = 3
MIN_SEGMENT_DURATION = 1.0


def apply_regex_filter(content: str, pattern: Optional[str]) -> str:
    """Remove every match of ``pattern`` from ``content``; a bad pattern is ignored."""

    if not pattern:
        return content
    try:
        regex = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        logging.warning("Ignoring invalid ad filter regex %r: %s", pattern, exc)
        return content
    return regex.sub("", content)


def calculate_segment_stats(segments: List[Segment]) -> SegmentStatistics:
    durations = [segment.duration_seconds for segment in segments]
    count = len(durations)
    total = sum(durations)
    mean = total / count
    std_dev = math.sqrt(sum((duration - mean) ** 2 for duration in durations) / count)
    ordered = sorted(durations)
    return SegmentStatistics(
        mean_duration=mean,
        std_dev=std_dev,
        p10=ordered[math.floor(count * 0.1)],
        p90=ordered[math.floor(count * 0.9)],
        segment_count=count,
        total_duration=total,
        min_duration=ordered[0],
        max_duration=ordered[-1],
    )


def _position_factor(segment: Segment, stats: SegmentStatistics) -> float:
    if segment.duration_seconds >= stats.p10:
        return 0.0
    if segment.index < EDGE_SEGMENTS:
        return LEADING_SHORT_FACTOR
    if segment.index > stats.segment_count - EDGE_SEGMENTS:
        return TRAILING_SHORT_FACTOR
    return 0.0


def classify_segments(segments: List[Segment], stats: SegmentStatistics) -> List[Segment]:
    """Populate ``ad_score`` and ``is_ad`` on every segment and return them."""

    for segment in segments:
        if stats.std_dev > 0:
            z_score = abs(segment.duration_seconds - stats.mean_duration) / stats.std_dev
        else:
            z_score = 0.0
        duration_abnormality = min(1.0, z_score / 3)
        discontinuity_factor = DISCONTINUITY_FACTOR if segment.has_discontinuity else 0.0

        score = (
            duration_abnormality * DURATION_WEIGHT
            + _position_factor(segment, stats) * POSITION_WEIGHT
            + discontinuity_factor * DISCONTINUITY_WEIGHT
        )
        segment.ad_score = min(1.0, max(0.0, score))
        segment.is_ad = segment.ad_score > AD_SCORE_THRESHOLD
    return segments


def removal_threshold(stats: SegmentStatistics) -> float:
    variation = stats.std_dev / stats.mean_duration if stats.mean_duration > 0 else 0.0
    return min(0.8, max(0.5, AD_SCORE_THRESHOLD - variation * 0.2))


def _should_remove(segment: Segment, threshold: float) -> bool:
    if segment.is_ad and segment.ad_score > threshold:
        return True
    if segment.duration_seconds < MIN_SEGMENT_DURATION and segment.index > EDGE_SEGMENTS:
        # init segments carry the fMP4 header and must survive
        return segment.map_uri is None
    return False


def decide_segments(segments: List[Segment], stats: SegmentStatistics) -> List[Segment]:
    """Return the segments that survive the removal decision, in order."""

    threshold = removal_threshold(stats)
    return [segment for segment in segments if not _should_remove(segment, threshold)]


def filter_ads(content: str, regex_filter: Optional[str] = None) -> str:
    """Run the full ad pipeline over playlist text and return the filtered text."""

    if not content:
        return ""
    content = apply_regex_filter(content, regex_filter)
    parsed = parse_playlist(content)
    if not parsed.segments:
        return content

    stats = calculate_segment_stats(parsed.segments)
    analyzed = classify_segments(parsed.segments, stats)
    kept = decide_segments(analyzed, stats)
    removed = len(analyzed) - len(kept)
    if not removed:
        return content

    logging.debug(
        "Ad filter removed %s of %s segments (mean %.2fs, std %.2fs)",
        removed,
        stats.segment_count,
        stats.mean_duration,
        stats.std_dev,
    )
    return rebuild_playlist(parsed, kept)
