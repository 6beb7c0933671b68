"""Immutable configuration values shared by the fetcher, the processor and the web app."""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_MEDIA_FILE_EXTENSIONS: Tuple[str, ...] = (
    # video
    ".mp4", ".webm", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".f4v", ".m4v",
    ".3gp", ".3g2", ".ts", ".mts", ".m2ts",
    # audio
    ".mp3", ".wav", ".ogg", ".aac", ".m4a", ".flac", ".wma", ".alac", ".aiff", ".opus",
    # image
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".tiff", ".svg", ".avif", ".heic",
)

DEFAULT_MEDIA_CONTENT_TYPES: Tuple[str, ...] = ("video/", "audio/", "image/")

DEFAULT_USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Safari/605.1.15",
)


class ProxyPolicy(BaseModel):
    """How URLs are wrapped by a proxy; an empty base means direct access."""

    model_config = ConfigDict(frozen=True)

    proxy_base: str = ""
    url_encode: bool = True


class RewriteContext(BaseModel):
    """Per-request snapshot of everything the rewriter needs."""

    model_config = ConfigDict(frozen=True)

    main_proxy: ProxyPolicy = ProxyPolicy()
    segment_proxy: ProxyPolicy = ProxyPolicy()
    filter_discontinuity: bool = False
    filter_ads: bool = False
    ad_filter_regex: Optional[str] = None
    max_recursion: int = 5
    base_url: str


class ProxySettings(BaseModel):
    """Service-wide configuration built once at startup."""

    model_config = ConfigDict(frozen=True)

    main_proxy: ProxyPolicy = ProxyPolicy()
    segment_proxy: ProxyPolicy = ProxyPolicy()
    cache_ttl: int = 86400
    cache_dir: Optional[str] = None
    cache_size: int = 500
    max_recursion: int = 5
    filter_discontinuity: bool = True
    filter_ads: bool = False
    ad_filter_regex: Optional[str] = None
    media_file_extensions: Tuple[str, ...] = DEFAULT_MEDIA_FILE_EXTENSIONS
    media_content_types: Tuple[str, ...] = DEFAULT_MEDIA_CONTENT_TYPES
    fetch_timeout: int = 10
    user_agents: Tuple[str, ...] = DEFAULT_USER_AGENTS
    allowed_domains: Tuple[str, ...] = ()
    blocked_domains: Tuple[str, ...] = ()
    request_limit: int = 0

    def rewrite_context(self, base_url: str) -> RewriteContext:
        return RewriteContext(
            main_proxy=self.main_proxy,
            segment_proxy=self.segment_proxy,
            filter_discontinuity=self.filter_discontinuity,
            filter_ads=self.filter_ads,
            ad_filter_regex=self.ad_filter_regex,
            max_recursion=self.max_recursion,
            base_url=base_url,
        )
