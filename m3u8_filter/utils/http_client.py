"""HTTP fetching of origin playlists, optionally through an upstream proxy."""

from __future__ import annotations

import logging
import random
import threading
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

import requests

from ..errors import FetchFailure
from ..models import FetchResult, ProxyPolicy
from ..models.settings_models import DEFAULT_USER_AGENTS
from ..playlist.url_resolver import proxy_wrap

BASE_HEADERS: Dict[str, str] = {
    "accept": "*/*",
}


class HttpClient:
    """Fetches origin content with browser-like headers and a bounded timeout."""

    def __init__(
        self,
        main_proxy: Optional[ProxyPolicy] = None,
        timeout: int = 10,
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
    ) -> None:
        self.main_proxy = main_proxy or ProxyPolicy()
        self.timeout = timeout
        self._user_agents = list(user_agents) or list(DEFAULT_USER_AGENTS)
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The calling thread's session; sessions are not shared across executor threads."""

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(BASE_HEADERS)
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def build_headers(self, url: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"user-agent": random.choice(self._user_agents)}
        parsed = urlparse(url)
        if parsed.scheme and parsed.netloc:
            headers["referer"] = f"{parsed.scheme}://{parsed.netloc}"
        if extra:
            headers.update(extra)
        return headers

    def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """GET ``url`` (through the main proxy when configured) and return its text."""

        fetch_url = proxy_wrap(url, self.main_proxy)
        try:
            response = self.session.get(
                fetch_url,
                headers=self.build_headers(url, headers),
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            logging.error("HTTP GET to %s failed: %s", fetch_url, exc)
            raise FetchFailure(url, str(exc)) from exc

        if not response.ok:
            logging.error("Origin answered %s for %s", response.status_code, fetch_url)
            raise FetchFailure(
                url,
                f"HTTP error {response.status_code}: {response.reason}",
                response.status_code,
            )

        # behind a proxy the response URL is the proxy's, not the origin's
        final_url = url if self.main_proxy.proxy_base else response.url or url
        return FetchResult(
            body=response.text,
            content_type=response.headers.get("Content-Type", ""),
            status_code=response.status_code,
            final_url=final_url,
        )

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
