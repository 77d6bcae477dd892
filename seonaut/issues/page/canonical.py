"""Reporters for canonical tag issues."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport

_CANONICAL_HREF = '//head/link[@rel="canonical"]/@href'


def _canonical_hrefs(html_node: Any) -> list[str]:
    if html_node is None:
        return []
    return [str(href) for href in html_node.xpath(_CANONICAL_HREF)]


def _header_value(header: Mapping[str, Any] | None, name: str) -> str:
    if not header:
        return ""
    value = header.get(name)
    if value is None:
        lowered = name.lower()
        value = next((v for k, v in header.items() if k.lower() == lowered), None)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return "" if value is None else str(value)


def _is_absolute(url: str) -> bool | None:
    try:
        return bool(urlsplit(url).scheme)
    except ValueError:
        return None


def new_canonical_multiple_tags_reporter() -> PageIssueReporter:
    """Report HTML pages whose head holds more than one canonical tag."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html:
            return False
        return len(_canonical_hrefs(html_node)) > 1

    return PageIssueReporter(ErrorType.MULTIPLE_CANONICAL_TAGS, callback)


def new_canonical_relative_url_reporter() -> PageIssueReporter:
    """Report HTML pages whose canonical tag uses a relative URL."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html:
            return False
        hrefs = _canonical_hrefs(html_node)
        if not hrefs:
            return False
        absolute = _is_absolute(hrefs[0])
        if absolute is None:
            return False
        return not absolute

    return PageIssueReporter(ErrorType.RELATIVE_CANONICAL_URL, callback)


def new_canonical_mismatch_reporter() -> PageIssueReporter:
    """Report HTML pages whose canonical tag differs from the canonical Link header."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not page_report.crawled or not page_report.is_html:
            return False
        hrefs = _canonical_hrefs(html_node)
        if not hrefs:
            return False
        tag_canonical = hrefs[0]

        header_canonical = ""
        for element in _header_value(header, "Link").split(","):
            attrs = element.split(";")
            if len(attrs) == 2 and 'rel="canonical"' in attrs[1]:
                target = attrs[0].strip()
                header_canonical = target[1:-1]

        if not header_canonical:
            return False
        return tag_canonical != header_canonical

    return PageIssueReporter(ErrorType.CANONICAL_MISMATCH, callback)