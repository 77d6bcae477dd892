import lxml.html
import pytest

from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import Image, PageReport
from seonaut.issues.page.images import (
    new_alt_text_reporter,
    new_img_without_size_reporter,
    new_large_image_reporter,
    new_long_alt_text_reporter,
    new_missing_img_tag_in_picture_reporter,
    new_no_image_index_reporter,
)


def _page(**kwargs) -> PageReport:
    return PageReport(crawled=True, media_type="text/html", **kwargs)


def _parse(source: str):
    return lxml.html.document_fromstring(source)


def test_alt_text_no_issues():
    reporter = new_alt_text_reporter()
    assert reporter.error_type == ErrorType.IMAGES_WITH_NO_ALT
    page = _page(images=[Image(alt="Image alt text")])
    assert reporter.callback(page, None, {}) is False


def test_alt_text_issues():
    reporter = new_alt_text_reporter()
    page = _page(images=[Image()])
    assert reporter.callback(page, None, {}) is True


def test_long_alt_text_no_issues():
    reporter = new_long_alt_text_reporter()
    assert reporter.error_type == ErrorType.LONG_ALT_TEXT
    page = _page(images=[Image(alt="Image alt text")])
    assert reporter.callback(page, None, {}) is False


def test_long_alt_text_issues():
    reporter = new_long_alt_text_reporter()
    alt = (
        "This is a long alt text. This is a long alt text. This is a long alt text. "
        "This is a long alt text. This is a long alt text."
    )
    page = _page(images=[Image(alt=alt)])
    assert reporter.callback(page, None, {}) is True


def test_long_alt_text_counts_characters_not_bytes():
    reporter = new_long_alt_text_reporter()
    page = _page(images=[Image(alt="é" * 100)])
    assert reporter.callback(page, None, {}) is False


@pytest.mark.parametrize("size, expected", [(300000, False), (700000, True)])
def test_large_image(size, expected):
    reporter = new_large_image_reporter()
    assert reporter.error_type == ErrorType.LARGE_IMAGE
    page = PageReport(crawled=True, media_type="image/jpeg", size=size)
    assert reporter.callback(page, None, {}) is expected


def test_no_image_index_no_issues():
    reporter = new_no_image_index_reporter()
    assert reporter.error_type == ErrorType.NO_IMAGE_INDEX
    assert reporter.callback(_page(), None, {}) is False


def test_no_image_index_issues():
    reporter = new_no_image_index_reporter()
    assert reporter.callback(_page(robots="noimageindex"), None, {}) is True


def test_missing_img_in_picture_no_issues():
    reporter = new_missing_img_tag_in_picture_reporter()
    assert reporter.error_type == ErrorType.MISSING_IMG_ELEMENT
    doc = _parse(
        """
    <html>
        <body>
            <picture>
                <source srcset="/media/img-240-200.jpg" media="(orientation: portrait)" />
                <img src="/media/media/img-298-332.jpg" alt="" />
            </picture>
        </body>
    </html>
"""
    )
    assert reporter.callback(_page(), doc, {}) is False


def test_missing_img_in_picture_issues():
    reporter = new_missing_img_tag_in_picture_reporter()
    doc = _parse(
        """
    <html>
        <body>
            <picture>
                <source srcset="/media/img-240-200.jpg" media="(orientation: portrait)" />
            </picture>
        </body>
    </html>
"""
    )
    assert reporter.callback(_page(), doc, {}) is True


def test_img_without_size_no_issues():
    reporter = new_img_without_size_reporter()
    assert reporter.error_type == ErrorType.IMG_WITHOUT_SIZE
    doc = _parse(
        """
    <html>
        <body>
            <img src="example.jpg" width="80vw" height="100%">
            <img src="example-2.jpg" width="400" height="400">
        </body>
    </html>
"""
    )
    assert reporter.callback(_page(), doc, {}) is False


@pytest.mark.parametrize(
    "img",
    [
        '<img src="example.jpg">',
        '<img src="example.jpg" height="200">',
        '<img src="example.jpg" width="200">',
    ],
)
def test_img_without_size_issues(img):
    reporter = new_img_without_size_reporter()
    doc = _parse(f"<html><body>{img}</body></html>")
    assert reporter.callback(_page(), doc, {}) is True