"""Page data checked by the page issue reporters, and the depth reporter."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult, urlsplit

from seonaut.issues.errors import ErrorType

# A reporter callback receives the page report, the parsed HTML document
# (an lxml element or tree, or None when there is none) and the response
# headers, and returns True if the page has the issue.
PageCallback = Callable[["PageReport", Any, "Mapping[str, Any] | None"], bool]


@dataclass
class Hreflang:
    """An hreflang link found in a page."""

    url: str = ""
    lang: str = ""


@dataclass
class Image:
    """An image found in a page."""

    url: str = ""
    alt: str = ""


@dataclass
class PageReport:
    """The data collected from one crawled URL."""

    url: str = ""
    crawled: bool = False
    media_type: str = ""
    status_code: int = 0
    words: int = 0
    depth: int = 0
    size: int = 0
    title: str = ""
    description: str = ""
    h1: str = ""
    lang: str = ""
    robots: str = ""
    hreflangs: list[Hreflang] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)

    @property
    def parsed_url(self) -> SplitResult:
        """The components of the page URL."""
        return urlsplit(self.url)

    @property
    def is_html(self) -> bool:
        return self.media_type == "text/html"

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class PageIssueReporter:
    """Pairs an issue type with the callback that detects it."""

    error_type: ErrorType
    callback: PageCallback


def new_depth_reporter() -> PageIssueReporter:
    """Report successful HTML pages that are more than four links deep."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.is_html or not page_report.is_success:
            return False
        return page_report.depth > 4

    return PageIssueReporter(ErrorType.DEPTH, callback)