"""Tests for master playlist detection and variant resolution."""

from __future__ import annotations

from typing import List, Optional

import pytest

from m3u8_filter.errors import FetchFailure, NoVariantFound, RecursionExceeded
from m3u8_filter.models import FetchResult
from m3u8_filter.playlist.master_resolver import (
    is_master_playlist,
    resolve_master_playlist,
    select_variant,
)

MASTER = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360
# low quality first
low/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2400000,RESOLUTION=1280x720
high/index.m3u8
"""

MEDIA = "#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXTINF:6.0,\nseg.ts\n#EXT-X-ENDLIST"


class MasterChainFetcher:
    """Answers every URL with another master pointing one level deeper."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def fetch(self, url: str, headers: Optional[dict] = None) -> FetchResult:
        self.calls.append(url)
        body = f"#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlevel{len(self.calls)}.m3u8\n"
        return FetchResult(body=body, final_url=url)


def test_master_detection() -> None:
    assert is_master_playlist(MASTER)
    assert not is_master_playlist(MEDIA)
    assert is_master_playlist('#EXTM3U\n#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="a",URI="audio.m3u8"\n')
    # a live playlist that has not produced segments yet is still a media playlist
    assert not is_master_playlist("#EXTM3U\n#EXT-X-MEDIA-SEQUENCE:12\n#EXT-X-TARGETDURATION:6\n")


def test_select_first_variant() -> None:
    variant = select_variant(MASTER, "https://cdn.example.com/vod/")
    assert variant == "https://cdn.example.com/vod/low/index.m3u8"


def test_select_variant_missing() -> None:
    assert select_variant("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n", "https://a/") is None


def test_resolve_to_media_playlist(fetcher) -> None:
    fetcher.add("https://cdn.example.com/vod/low/index.m3u8", MEDIA)

    content, url = resolve_master_playlist(
        MASTER, "https://cdn.example.com/vod/master.m3u8", fetcher, max_recursion=5
    )

    assert content == MEDIA
    assert url == "https://cdn.example.com/vod/low/index.m3u8"
    assert fetcher.calls == ["https://cdn.example.com/vod/low/index.m3u8"]


def test_media_playlist_is_returned_without_fetching(fetcher) -> None:
    content, url = resolve_master_playlist(MEDIA, "https://a/b.m3u8", fetcher, max_recursion=5)
    assert (content, url) == (MEDIA, "https://a/b.m3u8")
    assert fetcher.calls == []


def test_no_variant_found(fetcher) -> None:
    with pytest.raises(NoVariantFound):
        resolve_master_playlist(
            "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n", "https://a/m.m3u8", fetcher, max_recursion=5
        )


def test_recursion_bound() -> None:
    """Test an endless chain of masters stops at the configured depth."""
    chain = MasterChainFetcher()
    start = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlevel0.m3u8\n"

    with pytest.raises(RecursionExceeded):
        resolve_master_playlist(start, "https://a/start.m3u8", chain, max_recursion=3)
    assert len(chain.calls) == 3


def test_zero_recursion_rejects_any_master(fetcher) -> None:
    with pytest.raises(RecursionExceeded):
        resolve_master_playlist(MASTER, "https://a/m.m3u8", fetcher, max_recursion=0)
    assert fetcher.calls == []


def test_cyclic_variants(fetcher) -> None:
    fetcher.add("https://a/b.m3u8", "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\na.m3u8\n")
    start = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nb.m3u8\n"

    with pytest.raises(RecursionExceeded):
        resolve_master_playlist(start, "https://a/a.m3u8", fetcher, max_recursion=50)
    assert fetcher.calls == ["https://a/b.m3u8"]


def test_variant_error_status(fetcher) -> None:
    fetcher.add("https://cdn.example.com/vod/low/index.m3u8", "gone", status_code=404)

    with pytest.raises(FetchFailure) as exc_info:
        resolve_master_playlist(MASTER, "https://cdn.example.com/vod/master.m3u8", fetcher, 5)
    assert exc_info.value.status_code == 404
