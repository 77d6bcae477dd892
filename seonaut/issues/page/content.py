"""Reporters for page content issues."""

from __future__ import annotations

import mimetypes
from typing import Any

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _elements(html_node: Any, query: str) -> list[Any]:
    if html_node is None:
        return []
    return list(html_node.xpath(query))


def _checkable(page_report: PageReport) -> bool:
    return page_report.crawled and page_report.is_html and page_report.is_success


def new_little_content_reporter() -> PageIssueReporter:
    """Report successful HTML pages with fewer than 200 words."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return page_report.words < 200

    return PageIssueReporter(ErrorType.LITTLE_CONTENT, callback)


def new_incorrect_media_type_reporter() -> PageIssueReporter:
    """Report URLs with no media type or one that does not match their extension."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.media_type:
            return True

        ext = _extension(page_report.parsed_url.path) or ".html"

        if ext == ".js":
            return page_report.media_type not in ("application/javascript", "text/javascript")

        mime_type, _ = mimetypes.guess_type("file" + ext, strict=False)
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type("file" + ext.lower(), strict=False)
        if not mime_type:
            return False
        return mime_type.split(";")[0] != page_report.media_type

    return PageIssueReporter(ErrorType.INCORRECT_MEDIA_TYPE, callback)


def new_duplicated_id_reporter() -> PageIssueReporter:
    """Report successful HTML pages in which an id attribute value repeats."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        ids: set[str] = set()
        for element in _elements(html_node, "//*[@id]"):
            value = element.get("id", "")
            if not value:
                continue
            if value in ids:
                return True
            ids.add(value)
        return False

    return PageIssueReporter(ErrorType.DUPLICATED_ID, callback)


def new_dom_size_reporter(size: int) -> PageIssueReporter:
    """Report successful HTML pages with more than ``size`` elements."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return len(_elements(html_node, "//*")) > size

    return PageIssueReporter(ErrorType.DOM_SIZE, callback)