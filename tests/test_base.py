from seonaut.issues.errors import ErrorType
from seonaut.issues.page.base import PageReport, new_depth_reporter


def test_error_type():
    assert new_depth_reporter().error_type == ErrorType.DEPTH


def test_depth_no_issues():
    report = PageReport(crawled=True, media_type="text/html", status_code=200, depth=3)
    assert new_depth_reporter().callback(report, None, {}) is False


def test_depth_issues():
    report = PageReport(crawled=True, media_type="text/html", status_code=200, depth=8)
    assert new_depth_reporter().callback(report, None, {}) is True


def test_depth_ignores_non_html():
    report = PageReport(crawled=True, media_type="image/png", status_code=200, depth=8)
    assert new_depth_reporter().callback(report, None, {}) is False


def test_depth_ignores_redirects():
    report = PageReport(crawled=True, media_type="text/html", status_code=301, depth=8)
    assert new_depth_reporter().callback(report, None, {}) is False


def test_parsed_url():
    report = PageReport(url="https://example.com/a/b.html?x=1")
    assert report.parsed_url.scheme == "https"
    assert report.parsed_url.path == "/a/b.html"