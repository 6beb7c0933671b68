"""aiohttp front-end exposing the playlist processor over HTTP."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, Optional
from urllib.parse import unquote, urlparse

from aiohttp import web

from .errors import PlaylistProcessingError
from .models import ProxySettings, ResultKind
from .processor import PlaylistProcessor
from .utils.rate_limit import RequestRateLimiter

PLAYLIST_MIME_TYPE = "application/vnd.apple.mpegurl"
USAGE_MESSAGE = 'Please provide an M3U8 URL via the "url" parameter or /m3u8filter/URL path'

PROCESSOR_KEY = web.AppKey("processor", PlaylistProcessor)
SETTINGS_KEY = web.AppKey("settings", ProxySettings)
RATE_LIMITER_KEY = web.AppKey("rate_limiter", RequestRateLimiter)

_PATH_TARGET_RE = re.compile(r"/m3u8filter/(.+)")

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


def get_target_url(request: web.Request) -> Optional[str]:
    target = request.query.get("url")
    if target:
        return target
    match = _PATH_TARGET_RE.search(request.raw_path)
    if match:
        return unquote(match.group(1))
    return None


def is_domain_allowed(url: str, settings: ProxySettings) -> bool:
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False

    def matches(domain: str) -> bool:
        domain = domain.lower()
        return host == domain or host.endswith(f".{domain}")

    if any(matches(domain) for domain in settings.blocked_domains):
        logging.debug("Domain %s is blocked", host)
        return False
    if settings.allowed_domains and not any(matches(domain) for domain in settings.allowed_domains):
        logging.debug("Domain %s is not in the allow list", host)
        return False
    return True


def _client_id(request: web.Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote or "unknown"


def _text_response(text: str, status: int) -> web.Response:
    return web.Response(
        text=text,
        status=status,
        content_type="text/plain",
        headers={"Access-Control-Allow-Origin": "*", "Cache-Control": "no-store"},
    )


async def handle_request(request: web.Request) -> web.StreamResponse:
    """Serve one proxied playlist, redirect, or error."""

    if request.method == "OPTIONS":
        return web.Response(status=204, headers={**CORS_HEADERS, "Access-Control-Max-Age": "86400"})

    settings = request.app[SETTINGS_KEY]
    if not request.app[RATE_LIMITER_KEY].check(_client_id(request)):
        return _text_response("Too many requests", 429)

    target_url = get_target_url(request)
    if not target_url:
        return _text_response(USAGE_MESSAGE, 400)
    if not is_domain_allowed(target_url, settings):
        return _text_response("Domain not allowed", 403)

    processor = request.app[PROCESSOR_KEY]
    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(None, processor.try_process, target_url)
    except PlaylistProcessingError as exc:
        return _text_response(f"Error processing request: {exc}", 500)
    except Exception as exc:
        logging.exception("Unexpected error while processing %s", target_url)
        return _text_response(f"Error processing request: {exc}", 500)

    if result.kind is ResultKind.REDIRECT:
        return web.Response(
            status=302,
            headers={"Location": result.location or target_url, "Access-Control-Allow-Origin": "*"},
        )
    return web.Response(
        text=result.body or "",
        content_type=PLAYLIST_MIME_TYPE,
        headers={
            **CORS_HEADERS,
            "Cache-Control": f"public, max-age={settings.cache_ttl}",
        },
    )


def create_app(processor: PlaylistProcessor) -> web.Application:
    settings = processor.settings
    app = web.Application()
    app[PROCESSOR_KEY] = processor
    app[SETTINGS_KEY] = settings
    app[RATE_LIMITER_KEY] = RequestRateLimiter(settings.request_limit)
    for method in ("GET", "HEAD", "OPTIONS"):
        app.router.add_route(method, "/{tail:.*}", handle_request)
    return app


def run_server(processor: PlaylistProcessor, host: str, port: int) -> None:
    logging.info("M3U8 filter proxy listening on http://%s:%s/", host, port)
    web.run_app(create_app(processor), host=host, port=port, print=None)
