import zipfile

import pytest
from requests.structures import CaseInsensitiveDict

from seonaut.archiver.reader import ArchiveReader
from seonaut.archiver.writer import ArchiveWriter
from seonaut.crawler.basic_client import HTTPResponse


def _response(url, body):
    return HTTPResponse(
        status_code=200,
        headers=CaseInsensitiveDict({"Content-Type": "text/html"}),
        body=body,
        url=url,
        reason="OK",
    )


@pytest.fixture
def wacz(tmp_path):
    path = tmp_path / "crawl.wacz"
    with ArchiveWriter(path) as writer:
        writer.add_record(_response("https://example.com/", b"<p>home</p>"))
        writer.add_record(_response("https://example.com/page?id=7", b"<p>page seven</p>"))
        writer.add_record(_response("https://www.example.com/other", b"<p>other</p>"))
    return path


@pytest.mark.parametrize(
    ("url", "body"),
    [
        ("https://example.com/", "<p>home</p>"),
        ("https://example.com/page?id=7", "<p>page seven</p>"),
        ("https://www.example.com/other", "<p>other</p>"),
    ],
)
def test_round_trip(wacz, url, body):
    content = ArchiveReader(wacz).read_archive(url)
    assert content.endswith(body)
    assert content.startswith("HTTP/1.1 200")
    assert "Content-Type: text/html\r\n" in content


def test_unknown_url(wacz):
    with pytest.raises(LookupError):
        ArchiveReader(wacz).read_archive("https://example.com/missing")


def test_missing_archive(tmp_path):
    with pytest.raises(FileNotFoundError):
        ArchiveReader(tmp_path / "nope.wacz").read_archive("https://example.com/")


def test_archive_without_index(tmp_path):
    path = tmp_path / "bad.wacz"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("data/data.warc", b"")
    with pytest.raises(KeyError):
        ArchiveReader(path).read_archive("https://example.com/")


def test_index_line_without_json(tmp_path):
    path = tmp_path / "bad.wacz"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("data/data.warc", b"")
        zf.writestr("indexes/index.cdx", "com,example)/ 20240101000000 nojson\n")
    with pytest.raises(ValueError):
        ArchiveReader(path).read_archive("https://example.com/")


def test_empty_archive_has_no_entries(tmp_path):
    path = tmp_path / "empty.wacz"
    ArchiveWriter(path).close()
    with pytest.raises(LookupError):
        ArchiveReader(path).read_archive("https://example.com/")