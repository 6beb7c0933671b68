"""Data models for parsed playlists, configuration and processing results."""

from .playlist_models import ParsedPlaylist, PlaylistHeaders, Segment, SegmentStatistics, TagLine
from .result_models import FetchResult, PlaylistResult, ResultKind
from .settings_models import ProxyPolicy, ProxySettings, RewriteContext

__all__ = [
    "ParsedPlaylist",
    "PlaylistHeaders",
    "Segment",
    "SegmentStatistics",
    "TagLine",
    "FetchResult",
    "PlaylistResult",
    "ResultKind",
    "ProxyPolicy",
    "ProxySettings",
    "RewriteContext",
]
