"""Resolution of master (variant list) playlists down to a media playlist."""

from __future__ import annotations

import logging
import re
from typing import Optional, Protocol, Tuple

from ..errors import FetchFailure, NoVariantFound, RecursionExceeded
from ..models import FetchResult
from .parser import EXTINF_TAG
from .url_resolver import get_base_url, resolve_url

STREAM_INF_TAG = "#EXT-X-STREAM-INF"

_MEDIA_TAG_RE = re.compile(r"^#EXT-X-MEDIA:", re.MULTILINE)


class Fetcher(Protocol):
    def fetch(self, url: str, headers: Optional[dict] = None) -> FetchResult:
        ...


def checked_fetch(fetcher: Fetcher, url: str) -> FetchResult:
    """Fetch ``url`` and turn a non-2xx status into a FetchFailure."""

    result = fetcher.fetch(url)
    if not 200 <= result.status_code < 300:
        raise FetchFailure(url, f"HTTP error {result.status_code}", result.status_code)
    return result


def is_master_playlist(content: str) -> bool:
    if STREAM_INF_TAG in content:
        return True
    return bool(_MEDIA_TAG_RE.search(content)) and EXTINF_TAG not in content


def select_variant(content: str, base_url: str) -> Optional[str]:
    """
    Return the absolute URL of the first variant stream.
    There is no bandwidth or resolution negotiation: the first variant wins.
    """
    lines = [line.strip() for line in content.split("\n")]
    for position, line in enumerate(lines):
        if not line.startswith(STREAM_INF_TAG):
            continue
        for candidate in lines[position + 1 :]:
            if candidate and not candidate.startswith("#"):
                return resolve_url(base_url, candidate)
    return None


def resolve_master_playlist(
    content: str,
    url: str,
    fetcher: Fetcher,
    max_recursion: int,
) -> Tuple[str, str]:
    """
    Follow the first variant of master playlists until a media playlist is found.

    Returns the media playlist body and the URL it was fetched from.
    Raises NoVariantFound or RecursionExceeded instead of returning a master.
    """
    depth = 0
    visited = {url}
    while is_master_playlist(content):
        logging.debug("Master playlist detected at %s (depth %s)", url, depth)
        variant_url = select_variant(content, get_base_url(url))
        if variant_url is None:
            raise NoVariantFound(f"No variant stream found in master playlist {url}")
        if depth + 1 > max_recursion:
            raise RecursionExceeded(f"Maximum recursion depth ({max_recursion}) exceeded")
        if variant_url in visited:
            raise RecursionExceeded(f"Variant chain loops back to {variant_url}")

        logging.debug("Selected variant %s", variant_url)
        fetched = checked_fetch(fetcher, variant_url)
        visited.add(variant_url)
        content = fetched.body
        url = fetched.final_url or variant_url
        depth += 1
    return content, url
