"""Tests for the requests-based fetch collaborator."""

from __future__ import annotations

import threading
from typing import Any, Dict, List

import pytest
import requests

from m3u8_filter.errors import FetchFailure
from m3u8_filter.models import ProxyPolicy
from m3u8_filter.utils.http_client import HttpClient


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "#EXTM3U", url: str = "", headers=None) -> None:
        self.status_code = status_code
        self.text = text
        self.url = url
        self.headers = headers or {"Content-Type": "application/vnd.apple.mpegurl"}
        self.reason = "OK" if status_code < 400 else "Not Found"

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class RecordingGet:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if not self.response.url:
            self.response.url = url
        return self.response


def test_fetch_direct(monkeypatch: pytest.MonkeyPatch) -> None:
    client = HttpClient(timeout=7, user_agents=["agent-a"])
    get = RecordingGet(FakeResponse(url="https://cdn.example.com/moved/index.m3u8"))
    monkeypatch.setattr(client.session, "get", get)

    result = client.fetch("https://cdn.example.com/live/index.m3u8")

    assert result.body == "#EXTM3U"
    assert result.content_type == "application/vnd.apple.mpegurl"
    assert result.final_url == "https://cdn.example.com/moved/index.m3u8"
    call = get.calls[0]
    assert call["url"] == "https://cdn.example.com/live/index.m3u8"
    assert call["timeout"] == 7
    assert call["headers"]["user-agent"] == "agent-a"
    assert call["headers"]["referer"] == "https://cdn.example.com"


def test_fetch_through_main_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    client = HttpClient(main_proxy=ProxyPolicy(proxy_base="https://fetch.example/f/", url_encode=True))
    get = RecordingGet(FakeResponse())
    monkeypatch.setattr(client.session, "get", get)

    result = client.fetch("https://cdn.example.com/a.m3u8")

    assert get.calls[0]["url"] == "https://fetch.example/f/https%3A%2F%2Fcdn.example.com%2Fa.m3u8"
    assert result.final_url == "https://cdn.example.com/a.m3u8"


def test_fetch_error_status(monkeypatch: pytest.MonkeyPatch) -> None:
    client = HttpClient()
    monkeypatch.setattr(client.session, "get", RecordingGet(FakeResponse(status_code=404)))

    with pytest.raises(FetchFailure) as exc_info:
        client.fetch("https://cdn.example.com/missing.m3u8")
    assert exc_info.value.status_code == 404
    assert "HTTP error 404" in str(exc_info.value)


def test_fetch_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise(url: str, **kwargs: Any) -> FakeResponse:
        raise requests.ConnectionError("connection refused")

    with HttpClient() as client:
        monkeypatch.setattr(client.session, "get", _raise)
        with pytest.raises(FetchFailure) as exc_info:
            client.fetch("https://down.example/a.m3u8")
    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)


def test_each_thread_gets_its_own_session() -> None:
    """Test executor threads never share a requests session."""
    client = HttpClient()
    main_session = client.session
    seen: List[requests.Session] = []

    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()

    assert client.session is main_session
    assert seen[0] is not main_session
    assert len(client._sessions) == 2

    client.close()
    assert client._sessions == []
    assert client.session is not main_session
