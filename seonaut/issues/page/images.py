"""Reporters for image issues."""

from __future__ import annotations

from typing import Any

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageIssueReporter, PageReport


def _checkable(page_report: PageReport) -> bool:
    return page_report.crawled and page_report.is_html


def _find(html_node: Any, query: str) -> list[Any]:
    if html_node is None:
        return []
    return list(html_node.xpath(query))


def new_alt_text_reporter() -> PageIssueReporter:
    """Report HTML pages with images that have an empty or missing alt text."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return any(image.alt == "" for image in page_report.images)

    return PageIssueReporter(ErrorType.IMAGES_WITH_NO_ALT, callback)


def new_long_alt_text_reporter() -> PageIssueReporter:
    """Report HTML pages with images whose alt text exceeds 100 characters."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return any(len(image.alt) > 100 for image in page_report.images)

    return PageIssueReporter(ErrorType.LONG_ALT_TEXT, callback)


def new_large_image_reporter() -> PageIssueReporter:
    """Report images larger than 500000 bytes."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        return page_report.media_type.startswith("image") and page_report.size > 500000

    return PageIssueReporter(ErrorType.LARGE_IMAGE, callback)


def new_no_image_index_reporter() -> PageIssueReporter:
    """Report HTML pages whose robots meta holds the noimageindex rule."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return "noimageindex" in page_report.robots

    return PageIssueReporter(ErrorType.NO_IMAGE_INDEX, callback)


def new_missing_img_tag_in_picture_reporter() -> PageIssueReporter:
    """Report HTML pages with picture elements but no img element."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        # The img query is evaluated from the document root, as "//" always is.
        return any(not picture.xpath("//img") for picture in _find(html_node, "//picture"))

    return PageIssueReporter(ErrorType.MISSING_IMG_ELEMENT, callback)


def new_img_without_size_reporter() -> PageIssueReporter:
    """Report HTML pages with img elements lacking a width or height attribute."""

    def callback(page_report: PageReport, html_node: Any, header: Any) -> bool:
        if not _checkable(page_report):
            return False
        return any(
            not img.get("width", "") or not img.get("height", "")
            for img in _find(html_node, "//img")
        )

    return PageIssueReporter(ErrorType.IMG_WITHOUT_SIZE, callback)