"""Playlist parsing, rewriting, master resolution and ad filtering."""

from .ad_filter import filter_ads
from .master_resolver import is_master_playlist, resolve_master_playlist
from .parser import parse_playlist
from .rewriter import rebuild_playlist, rewrite_playlist
from .url_resolver import get_base_url, proxy_wrap, resolve_url

__all__ = [
    "filter_ads",
    "is_master_playlist",
    "resolve_master_playlist",
    "parse_playlist",
    "rebuild_playlist",
    "rewrite_playlist",
    "get_base_url",
    "proxy_wrap",
    "resolve_url",
]
