"""Reporters for hreflang issues."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport

_ALTERNATE_LINKS = '//head/link[@rel="alternate"]'


def _checkable(page_report: PageReport) -> bool:
    return page_report.crawled and page_report.is_html


def new_hreflang_x_default_missing_reporter() -> PageIssueReporter:
    """Report HTML pages with hreflang links but no x-default one."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report) or not page_report.hreflangs:
            return False
        return all(h.lang != "x-default" for h in page_report.hreflangs)

    return PageIssueReporter(ErrorType.HREFLANG_MISSING_X_DEFAULT, callback)


def new_hreflang_missing_self_reference() -> PageIssueReporter:
    """Report HTML pages with hreflang links but none pointing to themselves."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report) or not page_report.hreflangs:
            return False
        return all(h.url != page_report.url for h in page_report.hreflangs)

    return PageIssueReporter(ErrorType.HREFLANG_MISSING_SELF_REFERENCE, callback)


def new_hreflang_mismatching_lang() -> PageIssueReporter:
    """Report HTML pages whose self-referencing hreflang lang differs from the page lang."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report) or not page_report.lang:
            return False
        return any(
            h.url == page_report.url and h.lang != "x-default" and h.lang != page_report.lang
            for h in page_report.hreflangs
        )

    return PageIssueReporter(ErrorType.HREFLANG_MISMATCH_LANG, callback)


def new_hreflang_relative_url() -> PageIssueReporter:
    """Report HTML pages with alternate links that use relative URLs."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report) or html_node is None:
            return False
        for link in html_node.xpath(_ALTERNATE_LINKS):
            try:
                scheme = urlsplit(link.get("href", "")).scheme
            except ValueError:
                return False
            if not scheme:
                return True
        return False

    return PageIssueReporter(ErrorType.HREFLANG_RELATIVE_URL, callback)