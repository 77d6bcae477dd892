"""Reporters for heading issues."""

from __future__ import annotations

from typing import Any

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport

_HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def _heading_level(tag: str) -> int | None:
    try:
        return _HEADINGS.index(tag.lower())
    except ValueError:
        return None


def _headings_in_order(body: Any) -> bool:
    current = 0
    for element in body.iter():
        if not isinstance(element.tag, str):
            continue
        level = _heading_level(element.tag)
        if level is None:
            continue
        if level > current + 1:
            return False
        current = level
    return True


def new_no_h1_reporter() -> PageIssueReporter:
    """Report crawled HTML pages that have no H1 heading."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html:
            return False
        return page_report.h1 == ""

    return PageIssueReporter(ErrorType.NO_H1, callback)


def new_valid_headings_order_reporter() -> PageIssueReporter:
    """Report crawled HTML pages whose headings skip a level."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html:
            return False
        if html_node is None:
            return False
        bodies = html_node.xpath("//body")
        if not bodies:
            return False
        return not _headings_in_order(bodies[0])

    return PageIssueReporter(ErrorType.NOT_VALID_HEADINGS, callback)