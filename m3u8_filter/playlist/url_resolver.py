"""Relative URL resolution and proxy wrapping for playlist references."""

from __future__ import annotations

import re
from urllib.parse import quote, urljoin, urlparse

from ..models import ProxyPolicy

_ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

# characters encodeURIComponent leaves alone on top of quote()'s defaults
_ENCODE_SAFE = "!*'()"


def is_absolute_url(url: str) -> bool:
    return bool(_ABSOLUTE_URL_RE.match(url))


def get_base_url(url: str) -> str:
    """
    Return the directory URL of a playlist, i.e. its path without the final segment.
    Falls back to slicing on the last slash when the URL cannot be parsed.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        parsed = None
    if parsed is None or not parsed.scheme or not parsed.netloc:
        last_slash = url.rfind("/")
        return url[: last_slash + 1] if last_slash > 8 else url
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path.rsplit('/', 1)[0]}/"


def resolve_url(base_url: str, ref: str) -> str:
    """Convert a playlist reference to an absolute URL against ``base_url``."""

    ref = ref.strip()
    if is_absolute_url(ref):
        return ref
    try:
        return urljoin(base_url, ref)
    except ValueError:
        base = get_base_url(base_url)
        if ref.startswith("/"):
            parsed = urlparse(base) if is_absolute_url(base) else None
            if parsed is not None and parsed.netloc:
                return f"{parsed.scheme}://{parsed.netloc}{ref}"
        return base + ref.lstrip("/")


def proxy_wrap(url: str, policy: ProxyPolicy) -> str:
    """Route ``url`` through the proxy described by ``policy``."""

    if not policy.proxy_base:
        return url
    if url.startswith(policy.proxy_base):
        # already routed through this proxy
        return url
    target = quote(url, safe=_ENCODE_SAFE) if policy.url_encode else url
    return f"{policy.proxy_base}{target}"
