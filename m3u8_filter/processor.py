"""Entry point that turns a target URL into a proxied playlist or a redirect."""

from __future__ import annotations

import logging
from typing import Optional

from .errors import PlaylistProcessingError
from .models import PlaylistResult, ProxySettings
from .playlist.ad_filter import filter_ads
from .playlist.master_resolver import Fetcher, checked_fetch, resolve_master_playlist
from .playlist.rewriter import rewrite_playlist
from .playlist.url_resolver import get_base_url, proxy_wrap
from .utils.cache import MemoryCache, PlaylistCache, cache_key

PLAYLIST_SIGNATURE = "#EXTM3U"
PLAYLIST_CONTENT_TYPES = ("application/vnd.apple.mpegurl", "application/x-mpegurl")


def is_playlist_content(content: str, content_type: str) -> bool:
    lowered = (content_type or "").lower()
    if any(kind in lowered for kind in PLAYLIST_CONTENT_TYPES):
        return True
    return bool(content) and content.lstrip().startswith(PLAYLIST_SIGNATURE)


def is_media_file(url: str, content_type: str, settings: ProxySettings) -> bool:
    lowered_type = (content_type or "").lower()
    if any(lowered_type.startswith(prefix) for prefix in settings.media_content_types):
        return True
    lowered_url = url.lower()
    return any(
        lowered_url.endswith(ext) or f"{ext}?" in lowered_url
        for ext in settings.media_file_extensions
    )


class PlaylistProcessor:
    """Fetches, resolves, rewrites, filters and caches one playlist per call."""

    def __init__(
        self,
        settings: ProxySettings,
        fetcher: Fetcher,
        cache: Optional[PlaylistCache] = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.cache = cache if cache is not None else MemoryCache(settings.cache_size)

    def process(self, target_url: str) -> PlaylistResult:
        """
        Produce the client-facing result for ``target_url``.

        Raises PlaylistProcessingError (or a subclass) when the pipeline fails;
        nothing is cached in that case.
        """
        key = cache_key(target_url)
        cached = self.cache.get(key)
        if cached is not None:
            logging.debug("Cache hit for %s", target_url)
            return PlaylistResult.playlist(cached.decode("utf-8"), from_cache=True)

        logging.debug("Processing %s", target_url)
        fetched = checked_fetch(self.fetcher, target_url)

        if not is_playlist_content(fetched.body, fetched.content_type):
            if is_media_file(target_url, fetched.content_type, self.settings):
                location = proxy_wrap(target_url, self.settings.segment_proxy)
                logging.debug("Media file detected, redirecting to %s", location)
                return PlaylistResult.redirect(location)
            logging.debug("Not playlist content, redirecting to original %s", target_url)
            return PlaylistResult.redirect(target_url)

        content, media_url = resolve_master_playlist(
            fetched.body,
            fetched.final_url or target_url,
            self.fetcher,
            self.settings.max_recursion,
        )
        ctx = self.settings.rewrite_context(get_base_url(media_url))
        processed = rewrite_playlist(content, ctx)
        if ctx.filter_ads:
            processed = filter_ads(processed, ctx.ad_filter_regex)

        if self.settings.cache_ttl > 0:
            self.cache.put(key, processed.encode("utf-8"), self.settings.cache_ttl)
        return PlaylistResult.playlist(processed)

    def try_process(self, target_url: str) -> PlaylistResult:
        """Like process() but logs failures before re-raising them."""

        try:
            return self.process(target_url)
        except PlaylistProcessingError as exc:
            logging.error("Failed to process %s: %s", target_url, exc)
            raise
