"""Shared fixtures for the m3u8 filter tests."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pytest

from m3u8_filter.models import FetchResult, ProxyPolicy, ProxySettings

PLAYLIST_TYPE = "application/vnd.apple.mpegurl"


class FakeFetcher:
    """In-memory stand-in for HttpClient keyed by URL."""

    def __init__(self, responses: Optional[Dict[str, FetchResult]] = None) -> None:
        self.responses = dict(responses or {})
        self.calls: List[str] = []

    def add(self, url: str, body: str, content_type: str = PLAYLIST_TYPE, status_code: int = 200) -> None:
        self.responses[url] = FetchResult(
            body=body, content_type=content_type, status_code=status_code, final_url=url
        )

    def fetch(self, url: str, headers: Optional[dict] = None) -> FetchResult:
        self.calls.append(url)
        return self.responses[url]


@pytest.fixture(name="caplog")
def caplog_fixture(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Set log level to debug for tests using the caplog fixture."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def direct_settings() -> ProxySettings:
    """Settings with no proxies configured (passthrough mode)."""
    return ProxySettings(filter_discontinuity=True, filter_ads=False)


@pytest.fixture
def proxied_settings() -> ProxySettings:
    return ProxySettings(
        main_proxy=ProxyPolicy(proxy_base="https://fetch.example/f/", url_encode=True),
        segment_proxy=ProxyPolicy(proxy_base="https://proxy.example/p/", url_encode=True),
        filter_discontinuity=False,
    )
