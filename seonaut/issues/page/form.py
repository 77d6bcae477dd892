"""Reporters for insecure form issues."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport


def _forms(html_node: Any) -> list[Any]:
    if html_node is None:
        return []
    return list(html_node.xpath("//form"))


def new_form_on_http_reporter() -> PageIssueReporter:
    """Report HTML pages served over plain HTTP that contain a form."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if page_report.parsed_url.scheme == "https":
            return False
        if not page_report.crawled or not page_report.is_html:
            return False
        return bool(_forms(html_node))

    return PageIssueReporter(ErrorType.FORM_ON_HTTP, callback)


def new_insecure_form_reporter() -> PageIssueReporter:
    """Report HTML pages with a form whose action uses the http scheme."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html:
            return False
        for form in _forms(html_node):
            try:
                scheme = urlsplit(form.get("action", "")).scheme
            except ValueError:
                continue
            if scheme == "http":
                return True
        return False

    return PageIssueReporter(ErrorType.INSECURE_FORM, callback)