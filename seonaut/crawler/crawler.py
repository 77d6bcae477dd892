"""Concurrent website crawler driven by a request queue."""

from __future__ import annotations

import contextlib
import queue
import random
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from typing import Any, Protocol
from urllib.parse import urlsplit, urlunsplit

from seonaut.crawler.basic_client import ClientResponse, HTTPResponse
from seonaut.crawler.request_queue import Method, RequestMessage, RequestQueue
from seonaut.crawler.robots_checker import RobotsChecker
from seonaut.crawler.sitemap_checker import SitemapChecker
from seonaut.crawler.urlstorage import URLStorage

# Upper bound, in milliseconds, of the random delay before each request.
RANDOM_DELAY_MS = 1500
# Number of threads making requests for one crawl.
CONSUMER_THREADS = 2
# Maximum duration of a crawl, in seconds.
CRAWLER_TIMEOUT = 2 * 60 * 60

_POLL_INTERVAL = 0.05


class CrawlerError(Exception):
    """A request was rejected by the crawler."""


class BlockedByRobotsTxt(CrawlerError):
    def __init__(self, message: str = "blocked by robots.txt") -> None:
        super().__init__(message)


class AlreadyVisited(CrawlerError):
    def __init__(self, message: str = "URL already visited") -> None:
        super().__init__(message)


class DomainNotAllowed(CrawlerError):
    def __init__(self, message: str = "domain not allowed") -> None:
        super().__init__(message)


class _Client(Protocol):
    def get(self, url_str: str) -> ClientResponse: ...

    def head(self, url_str: str) -> ClientResponse: ...

    @property
    def user_agent(self) -> str: ...


@dataclass
class CrawlOptions:
    crawl_limit: int = 0
    ignore_robots_txt: bool = False
    follow_nofollow: bool = False
    include_noindex: bool = False
    crawl_sitemap: bool = False
    allow_subdomains: bool = False


@dataclass
class CrawlerStatus:
    crawled: int = 0
    crawling: bool = True
    discovered: int = 0


@dataclass
class ResponseMessage:
    """The outcome of one crawled URL."""

    url: str
    response: HTTPResponse | None = None
    error: BaseException | None = None
    ttfb: int = 0
    blocked: bool = False
    in_sitemap: bool = False
    timeout: bool = False
    data: Any = None


class Crawler:
    """Crawls a site, calling a callback for every response received."""

    def __init__(
        self,
        url: str,
        options: CrawlOptions,
        client: _Client,
        *,
        random_delay_ms: int = RANDOM_DELAY_MS,
        timeout: float = CRAWLER_TIMEOUT,
    ) -> None:
        self.client = client
        self._url = urlsplit(url)
        self._options = options
        self._status = CrawlerStatus(crawling=True)
        self._queue = RequestQueue()
        self._storage = URLStorage()
        self._sitemap_storage = URLStorage()
        self._sitemap_checker = SitemapChecker(client, options.crawl_limit)
        self._robots_checker = RobotsChecker(client)
        self._sitemap_exists = False
        self._sitemap_is_blocked = False
        self._sitemaps: list[str] = []
        self._main_domain = self._url.netloc.removeprefix("www.")
        self._allowed_domains = {self._main_domain, "www." + self._main_domain}
        self._random_delay_ms = random_delay_ms
        self._deadline = time.monotonic() + timeout
        self._stop = threading.Event()
        self._callback: Callable[[ResponseMessage], None] | None = None

    def on_response(self, callback: Callable[[ResponseMessage], None]) -> None:
        """Set the function called for every response."""
        self._callback = callback

    def start(self) -> None:
        """Crawl until there is nothing left to crawl or the crawl limit is hit."""
        try:
            self._crawl()
        finally:
            self._stop.set()
            self._queue.done()

    def add_request(self, request: RequestMessage) -> None:
        """Queue a request, raising a CrawlerError subclass if it is rejected."""
        if self._storage.seen(request.url):
            raise AlreadyVisited()
        self._storage.add(request.url)

        if not request.ignore_domain and not self._domain_is_allowed(urlsplit(request.url).netloc):
            raise DomainNotAllowed()

        if not self._options.ignore_robots_txt and self._robots_checker.is_blocked(request.url):
            raise BlockedByRobotsTxt()

        self._queue.push(request)

    def get_status(self) -> CrawlerStatus:
        """Return a snapshot of the crawler status."""
        self._status.discovered = self._queue.count()
        self._status.crawling = not self._cancelled()
        return replace(self._status)

    def sitemap_exists(self) -> bool:
        return self._sitemap_exists

    def robotstxt_exists(self) -> bool:
        return self._robots_checker.exists(urlunsplit(self._url))

    def sitemap_is_blocked(self) -> bool:
        return self._sitemap_is_blocked

    def stop(self) -> None:
        """Cancel the crawl."""
        self._stop.set()

    def _cancelled(self) -> bool:
        return self._stop.is_set() or time.monotonic() >= self._deadline

    def _crawl(self) -> None:
        self._setup_sitemaps()

        if self._sitemap_exists and self._options.crawl_sitemap:
            self._sitemap_checker.parse_sitemaps(self._sitemaps, self._load_sitemap_url)

        sitemap_loaded = False
        if not self._queue.active() and self._options.crawl_sitemap:
            self._queue_sitemap_urls()
            sitemap_loaded = True

        if not self._queue.active():
            return

        with contextlib.closing(self._responses()) as stream:
            for rm in stream:
                self._queue.ack(rm.url)

                rm.in_sitemap = self._sitemap_storage.seen(rm.url)
                rm.blocked = self._robots_checker.is_blocked(rm.url)
                rm.timeout = rm.error is not None

                self._status.crawled += 1

                if self._callback is not None:
                    self._callback(rm)

                if not self._queue.active() and self._options.crawl_sitemap and not sitemap_loaded:
                    self._queue_sitemap_urls()
                    sitemap_loaded = True

                if not self._queue.active() or self._status.crawled >= self._options.crawl_limit:
                    break

    def _setup_sitemaps(self) -> None:
        sitemaps = self._robots_checker.get_sitemaps(urlunsplit(self._url))
        if not sitemaps:
            sitemaps = [f"{self._url.scheme}://{self._url.netloc}/sitemap.xml"]

        allowed = []
        for sitemap in sitemaps:
            try:
                urlsplit(sitemap)
            except ValueError:
                continue
            if self._robots_checker.is_blocked(sitemap):
                self._sitemap_is_blocked = True
                if not self._options.ignore_robots_txt:
                    continue
            allowed.append(sitemap)

        self._sitemaps = allowed
        self._sitemap_exists = self._sitemap_checker.sitemap_exists(sitemaps)

    def _responses(self) -> Iterator[ResponseMessage]:
        results: queue.Queue[ResponseMessage] = queue.Queue()
        workers = [
            threading.Thread(target=self._consume, args=(results,), daemon=True)
            for _ in range(CONSUMER_THREADS)
        ]
        for worker in workers:
            worker.start()
        try:
            while not self._cancelled():
                try:
                    rm = results.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    continue
                yield rm
        finally:
            self._stop.set()
            for worker in workers:
                worker.join()

    def _consume(self, results: queue.Queue[ResponseMessage]) -> None:
        while not self._cancelled():
            message = self._queue.poll(timeout=_POLL_INTERVAL)
            if message is None:
                continue

            if self._random_delay_ms > 0:
                self._stop.wait(random.randrange(self._random_delay_ms) / 1000)

            rm = ResponseMessage(url=message.url, data=message.data)
            try:
                if message.method is Method.HEAD:
                    resp = self.client.head(message.url)
                else:
                    resp = self.client.get(message.url)
            except Exception as exc:
                rm.error = exc
            else:
                rm.response = resp.response
                rm.ttfb = resp.ttfb

            results.put(rm)

    def _load_sitemap_url(self, u: str) -> None:
        try:
            parts = urlsplit(u)
        except ValueError:
            return
        if not parts.path:
            parts = parts._replace(path="/")
        self._sitemap_storage.add(urlunsplit(parts))

    def _queue_sitemap_urls(self) -> None:
        for u in self._sitemap_storage:
            if not self._storage.seen(u):
                self._storage.add(u)
                self._queue.push(RequestMessage(url=u))

    def _domain_is_allowed(self, domain: str) -> bool:
        if domain in self._allowed_domains:
            return True
        return self._options.allow_subdomains and domain.endswith(self._main_domain)