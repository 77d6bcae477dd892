"""HTTP client used by the crawler, with user agent and basic auth handling."""

from __future__ import annotations

import base64
import time
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict


@dataclass
class HTTPRequest:
    """An outgoing HTTP request."""

    method: str
    url: str
    headers: MutableMapping[str, str] = field(default_factory=CaseInsensitiveDict)


@dataclass
class HTTPResponse:
    """A received HTTP response with its body fully read."""

    status_code: int
    headers: MutableMapping[str, str] = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""
    url: str = ""
    reason: str = ""
    version: tuple[int, int] = (1, 1)
    ttfb: int | None = None


class _Transport(Protocol):
    def send(self, request: HTTPRequest) -> HTTPResponse: ...


@dataclass
class ClientOptions:
    """Client settings: user agent and basic auth credentials per domain."""

    user_agent: str = ""
    basic_auth_domains: list[str] = field(default_factory=list)
    auth_user: str = ""
    auth_pass: str = ""


@dataclass
class ClientResponse:
    """A response together with its time to first byte in milliseconds."""

    response: HTTPResponse
    ttfb: int = 0


class RequestsTransport:
    """Sends requests with a requests session, measuring time to first byte."""

    def __init__(
        self,
        session: Any = None,
        timeout: float | None = 30.0,
        follow_redirects: bool = False,
    ) -> None:
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout
        self._follow_redirects = follow_redirects

    def send(self, request: HTTPRequest) -> HTTPResponse:
        """Send ``request`` and return the fully read response."""
        start = time.perf_counter()
        resp = self._session.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            stream=True,
            allow_redirects=self._follow_redirects,
            timeout=self._timeout,
        )
        ttfb = int((time.perf_counter() - start) * 1000)
        try:
            body = resp.content or b""
        finally:
            resp.close()

        raw_version = getattr(getattr(resp, "raw", None), "version", None)
        version = divmod(raw_version, 10) if isinstance(raw_version, int) and raw_version else (1, 1)

        return HTTPResponse(
            status_code=resp.status_code,
            headers=CaseInsensitiveDict(resp.headers),
            body=body,
            url=resp.url or request.url,
            reason=resp.reason or "",
            version=version,
            ttfb=ttfb,
        )


def _host(url_str: str) -> str:
    return urlsplit(url_str).netloc.rpartition("@")[2]


class BasicClient:
    """Makes GET and HEAD requests with the configured user agent and auth."""

    def __init__(self, options: ClientOptions, transport: _Transport | None = None) -> None:
        self.options = options
        self._transport = transport if transport is not None else RequestsTransport()

    def get(self, url_str: str) -> ClientResponse:
        """Make a GET request to ``url_str``."""
        return self._request("GET", url_str)

    def head(self, url_str: str) -> ClientResponse:
        """Make a HEAD request to ``url_str``."""
        return self._request("HEAD", url_str)

    @property
    def user_agent(self) -> str:
        """The user agent this client sends."""
        return self.options.user_agent

    def _is_basic_auth_domain(self, domain: str) -> bool:
        return domain in self.options.basic_auth_domains

    def _request(self, method: str, url_str: str) -> ClientResponse:
        host = _host(url_str)
        request = HTTPRequest(method=method, url=url_str)
        if self.options.auth_user and self._is_basic_auth_domain(host):
            credentials = base64.b64encode(
                f"{self.options.auth_user}:{self.options.auth_pass}".encode()
            ).decode("ascii")
            request.headers["Authorization"] = f"Basic {credentials}"
        return self._do(request)

    def _do(self, request: HTTPRequest) -> ClientResponse:
        request.headers["User-Agent"] = self.options.user_agent
        response = self._transport.send(request)
        return ClientResponse(response=response, ttfb=response.ttfb or 0)