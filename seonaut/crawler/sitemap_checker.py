"""Sitemap existence checks and sitemap parsing."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from lxml import etree

from seonaut.crawler.basic_client import ClientResponse

_MAX_WORKERS = 8


class _Client(Protocol):
    def get(self, url_str: str) -> ClientResponse: ...

    def head(self, url_str: str) -> ClientResponse: ...


def _locations(body: bytes, container: str) -> list[str]:
    """Return the <loc> values of every ``container`` element in the XML body."""
    parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=True)
    try:
        root = etree.fromstring(body, parser)
    except (etree.XMLSyntaxError, ValueError):
        return []
    if root is None:
        return []

    locations = []
    for element in root.iter():
        if not isinstance(element.tag, str) or etree.QName(element).localname != container:
            continue
        for child in element:
            if isinstance(child.tag, str) and etree.QName(child).localname == "loc":
                text = (child.text or "").strip()
                if text:
                    locations.append(text)
                break
    return locations


class SitemapChecker:
    """Checks and parses sitemaps, stopping once ``limit`` URLs have been read."""

    def __init__(self, client: _Client, limit: int) -> None:
        self._client = client
        self._limit = limit

    def sitemap_exists(self, urls: list[str]) -> bool:
        """Return True if any of the sitemap URLs answers with a 2xx status."""
        return any(self._url_exists(u) for u in urls)

    def parse_sitemaps(self, urls: list[str], callback: Callable[[str], None]) -> None:
        """Call ``callback`` with every URL found in the sitemaps.

        Sitemap indexes are expanded into the sitemaps they list.
        """
        sitemaps = [s for u in urls for s in self._check_index(u)]
        if not sitemaps:
            return

        count = 0
        lock = threading.Lock()

        def consume(sitemap_url: str) -> None:
            nonlocal count
            try:
                resp = self._client.get(sitemap_url)
            except Exception:
                return
            for location in _locations(resp.response.body, "url"):
                callback(location)
                with lock:
                    count += 1
                    if count >= self._limit:
                        return

        with ThreadPoolExecutor(max_workers=min(len(sitemaps), _MAX_WORKERS)) as pool:
            list(pool.map(consume, sitemaps))

    def _url_exists(self, url: str) -> bool:
        try:
            resp = self._client.head(url)
        except Exception:
            return False
        return 200 <= resp.response.status_code < 300

    def _check_index(self, url: str) -> list[str]:
        try:
            resp = self._client.get(url)
        except Exception:
            return [url]
        sitemaps = _locations(resp.response.body, "sitemap")
        return sitemaps or [url]