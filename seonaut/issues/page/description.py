"""Reporters for meta description issues."""

from __future__ import annotations

from typing import Any

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport


def _checkable(page_report: PageReport) -> bool:
    return page_report.crawled and page_report.is_html and page_report.is_success


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def new_empty_description_reporter() -> PageIssueReporter:
    """Report successful HTML pages with a missing or empty description."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return page_report.description == ""

    return PageIssueReporter(ErrorType.EMPTY_DESCRIPTION, callback)


def new_short_description_reporter() -> PageIssueReporter:
    """Report successful HTML pages whose description is shorter than 80 bytes."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        length = _byte_length(page_report.description)
        return 0 < length < 80

    return PageIssueReporter(ErrorType.SHORT_DESCRIPTION, callback)


def new_long_description_reporter() -> PageIssueReporter:
    """Report successful HTML pages whose description is longer than 160 bytes."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return _byte_length(page_report.description) > 160

    return PageIssueReporter(ErrorType.LONG_DESCRIPTION, callback)


def new_multiple_description_tags_reporter() -> PageIssueReporter:
    """Report HTML pages with more than one description meta tag in the head."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html or html_node is None:
            return False
        return len(html_node.xpath('//head//meta[@name="description"]')) > 1

    return PageIssueReporter(ErrorType.MULTIPLE_DESCRIPTION_TAGS, callback)