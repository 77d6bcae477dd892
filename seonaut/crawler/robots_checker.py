"""Robots.txt fetching, caching and rule checking."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit

from seonaut.crawler.basic_client import ClientResponse


class _Client(Protocol):
    def get(self, url_str: str) -> ClientResponse: ...

    @property
    def user_agent(self) -> str: ...


@dataclass
class _Rule:
    pattern: str
    allow: bool
    regex: re.Pattern[str] | None = None

    @classmethod
    def make(cls, pattern: str, allow: bool) -> _Rule:
        regex = None
        if "*" in pattern or "$" in pattern:
            anchored = pattern.endswith("$")
            body = pattern[:-1] if anchored else pattern
            expr = ".*".join(re.escape(part) for part in body.split("*"))
            regex = re.compile(expr + ("$" if anchored else ""))
        return cls(pattern, allow, regex)

    def matches(self, path: str) -> bool:
        if self.regex is not None:
            return self.regex.match(path) is not None
        return path.startswith(self.pattern)


@dataclass
class _Group:
    agents: list[str] = field(default_factory=list)
    rules: list[_Rule] = field(default_factory=list)


@dataclass
class _RobotsData:
    groups: list[_Group] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> _RobotsData:
        data = cls()
        current: _Group | None = None
        reading_agents = False
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            key, sep, value = line.partition(":")
            if not sep:
                continue
            key = key.strip().lower()
            value = value.strip()
            if key in ("user-agent", "useragent"):
                if current is None or not reading_agents:
                    current = _Group()
                    data.groups.append(current)
                current.agents.append(value.lower())
                reading_agents = True
            elif key in ("allow", "disallow"):
                reading_agents = False
                if current is None or not value:
                    continue
                current.rules.append(_Rule.make(value, key == "allow"))
            elif key == "sitemap":
                if value:
                    data.sitemaps.append(value)
            else:
                reading_agents = False
        return data

    def _rules_for(self, agent: str) -> list[_Rule]:
        agent = agent.lower()
        best_len = -1
        specific: list[_Rule] = []
        wildcard: list[_Rule] = []
        for group in self.groups:
            for name in group.agents:
                if name == "*":
                    wildcard.extend(group.rules)
                elif name and name in agent:
                    if len(name) > best_len:
                        best_len = len(name)
                        specific = list(group.rules)
                    elif len(name) == best_len:
                        specific.extend(group.rules)
        return specific if best_len >= 0 else wildcard

    def test_agent(self, path: str, agent: str) -> bool:
        if not path:
            path = "/"
        if path == "/robots.txt":
            return True
        best: _Rule | None = None
        for rule in self._rules_for(agent):
            if not rule.matches(path):
                continue
            if (
                best is None
                or len(rule.pattern) > len(best.pattern)
                or (len(rule.pattern) == len(best.pattern) and rule.allow)
            ):
                best = rule
        return best is None or best.allow


def _request_path(parts: SplitResult) -> str:
    path = parts.path
    if parts.query:
        pairs = sorted(parse_qsl(parts.query, keep_blank_values=True), key=lambda kv: kv[0])
        path += "?" + urlencode(pairs)
    return path


class RobotsChecker:
    """Fetches robots.txt once per host and answers questions about it."""

    def __init__(self, client: _Client) -> None:
        self._client = client
        self._cache: dict[str, _RobotsData | None] = {}
        self._lock = threading.Lock()

    def is_blocked(self, url: str) -> bool:
        """Return True if ``url`` is disallowed for the client's user agent."""
        parts = urlsplit(url)
        robots = self._robots_for(parts)
        if robots is None:
            return False
        return not robots.test_agent(_request_path(parts), self._client.user_agent)

    def exists(self, url: str) -> bool:
        """Return True if a valid robots.txt exists for the host of ``url``."""
        return self._robots_for(urlsplit(url)) is not None

    def get_sitemaps(self, url: str) -> list[str]:
        """Return the sitemaps listed in the robots.txt of the host of ``url``."""
        robots = self._robots_for(urlsplit(url))
        if robots is None:
            return []
        return list(robots.sitemaps)

    def _robots_for(self, parts: SplitResult) -> _RobotsData | None:
        host = parts.netloc
        with self._lock:
            if host in self._cache:
                return self._cache[host]
            robots: _RobotsData | None = None
            if parts.scheme and host:
                try:
                    resp = self._client.get(f"{parts.scheme}://{host}/robots.txt")
                except Exception:
                    resp = None
                if resp is not None and resp.response.status_code == 200:
                    text = resp.response.body.decode("utf-8", errors="replace")
                    robots = _RobotsData.parse(text)
            self._cache[host] = robots
            return robots