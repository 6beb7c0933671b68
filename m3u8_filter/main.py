from __future__ import annotations

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .errors import PlaylistProcessingError
from .models import ProxyPolicy, ProxySettings, ResultKind
from .models.settings_models import (
    DEFAULT_MEDIA_CONTENT_TYPES,
    DEFAULT_MEDIA_FILE_EXTENSIONS,
    DEFAULT_USER_AGENTS,
)
from .processor import PlaylistProcessor
from .server import run_server
from .utils.cache import FileCache, MemoryCache
from .utils.http_client import HttpClient

load_dotenv()


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value


def _env_int(name: str) -> int | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str) -> list[str] | None:
    raw = _env_str(name)
    if not raw:
        return None
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or None


def _csv_arg(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_int_or(name: str, default: int) -> int:
    value = _env_int(name)
    return default if value is None else value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Proxy and rewrite HLS (m3u8) playlists.")
    parser.add_argument("--url", default=None, help="Process a single playlist URL, print the result and exit")
    parser.add_argument("--host", default=_env_str("HOST") or "0.0.0.0", help="Address to listen on")
    parser.add_argument("--port", type=int, default=_env_int_or("PORT", 8000), help="Port to listen on")
    parser.add_argument("--proxy-url", default=_env_str("PROXY_URL") or "", help="Main proxy used to fetch playlists (empty for direct)")
    parser.add_argument(
        "--proxy-urlencode",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("PROXY_URLENCODE", True),
        help="Percent-encode target URLs appended to the main proxy",
    )
    parser.add_argument("--proxy-ts", default=_env_str("PROXY_TS") or "", help="Proxy for segments, keys and init segments (empty for direct)")
    parser.add_argument(
        "--proxy-ts-urlencode",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("PROXY_TS_URLENCODE", True),
        help="Percent-encode segment URLs appended to the segment proxy",
    )
    parser.add_argument("--cache-ttl", type=int, default=_env_int_or("CACHE_TTL", 86400), help="Seconds to keep rewritten playlists (0 disables)")
    parser.add_argument("--cache-dir", default=_env_str("CACHE_DIR"), help="Directory for the file cache (in-memory when unset)")
    parser.add_argument("--cache-size", type=int, default=_env_int_or("CACHE_SIZE", 500), help="Maximum entries of the in-memory cache")
    parser.add_argument("--max-recursion", type=int, default=_env_int_or("MAX_RECURSION", 5), help="Maximum master playlist nesting")
    parser.add_argument(
        "--filter-discontinuity",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("FILTER_DISCONTINUITY", True),
        help="Drop #EXT-X-DISCONTINUITY lines",
    )
    parser.add_argument(
        "--filter-ads",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("FILTER_ADS"),
        help="Remove segments that look like inserted ads",
    )
    parser.add_argument("--filter-regex", default=_env_str("FILTER_REGEX"), help="Regex removed from the playlist text before ad filtering")
    parser.add_argument(
        "--media-extensions",
        type=_csv_arg,
        default=_env_list("MEDIA_FILE_EXTENSIONS"),
        help="Comma-separated file extensions redirected through the segment proxy",
    )
    parser.add_argument(
        "--media-content-types",
        type=_csv_arg,
        default=_env_list("MEDIA_CONTENT_TYPES"),
        help="Comma-separated MIME prefixes redirected through the segment proxy",
    )
    parser.add_argument("--fetch-timeout", type=int, default=_env_int_or("FETCH_TIMEOUT", 10), help="Seconds before an origin request times out")
    parser.add_argument("--user-agents", type=_csv_arg, default=_env_list("USER_AGENTS"), help="Comma-separated User-Agent pool")
    parser.add_argument("--allowed-domains", type=_csv_arg, default=_env_list("ALLOWED_DOMAINS"), help="Only proxy these domains")
    parser.add_argument("--blocked-domains", type=_csv_arg, default=_env_list("BLOCKED_DOMAINS"), help="Never proxy these domains")
    parser.add_argument("--request-limit", type=int, default=_env_int_or("REQUEST_LIMIT", 0), help="Requests per client per minute (0 disables)")
    parser.add_argument("--log-level", default=_env_str("LOG_LEVEL") or "INFO", help="Logging level")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> ProxySettings:
    return ProxySettings(
        main_proxy=ProxyPolicy(proxy_base=args.proxy_url, url_encode=args.proxy_urlencode),
        segment_proxy=ProxyPolicy(proxy_base=args.proxy_ts, url_encode=args.proxy_ts_urlencode),
        cache_ttl=args.cache_ttl,
        cache_dir=args.cache_dir,
        cache_size=args.cache_size,
        max_recursion=args.max_recursion,
        filter_discontinuity=args.filter_discontinuity,
        filter_ads=args.filter_ads,
        ad_filter_regex=args.filter_regex,
        media_file_extensions=tuple(args.media_extensions or DEFAULT_MEDIA_FILE_EXTENSIONS),
        media_content_types=tuple(args.media_content_types or DEFAULT_MEDIA_CONTENT_TYPES),
        fetch_timeout=args.fetch_timeout,
        user_agents=tuple(args.user_agents or DEFAULT_USER_AGENTS),
        allowed_domains=tuple(args.allowed_domains or ()),
        blocked_domains=tuple(args.blocked_domains or ()),
        request_limit=args.request_limit,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def build_processor(settings: ProxySettings, client: HttpClient) -> PlaylistProcessor:
    if settings.cache_dir:
        cache = FileCache(os.path.expanduser(settings.cache_dir))
        cache.clean_expired()
    else:
        cache = MemoryCache(settings.cache_size)
    return PlaylistProcessor(settings, client, cache)


def process_once(processor: PlaylistProcessor, url: str) -> int:
    try:
        result = processor.try_process(url)
    except PlaylistProcessingError:
        return 1
    if result.kind is ResultKind.REDIRECT:
        print(f"Redirect: {result.location}")
    else:
        print(result.body)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    settings = build_settings(args)

    with HttpClient(
        main_proxy=settings.main_proxy,
        timeout=settings.fetch_timeout,
        user_agents=settings.user_agents,
    ) as client:
        processor = build_processor(settings, client)
        try:
            if args.url:
                return process_once(processor, args.url)
            run_server(processor, args.host, args.port)
        finally:
            if isinstance(processor.cache, FileCache):
                processor.cache.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
