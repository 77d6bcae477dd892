"""Writes crawled HTTP responses into a WACZ web archive."""

from __future__ import annotations

import hashlib
import json
import time
import uuid
import zipfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urlsplit

from seonaut.crawler.basic_client import HTTPResponse

WARC_NAME = "data/data.warc"
INDEX_NAME = "indexes/index.cdx"
PAGES_NAME = "pages/pages.jsonl"
DATAPACKAGE_NAME = "datapackage.json"
DIGEST_NAME = "datapackage-digest.json"

INDEX_FILENAME = "data/data.warc.gz"
WACZ_VERSION = "1.1.1"
PAGES_HEADER = '{"format": "json-pages-1.0", "id": "pages", "title": "All Pages"}'

_CHUNK = 1 << 16


def _go_json(obj: Any) -> str:
    """Compact JSON with HTML-sensitive characters escaped."""
    text = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def _rfc3339(moment: datetime) -> str:
    stamp = moment.strftime("%Y-%m-%dT%H:%M:%S")
    offset = moment.utcoffset()
    if not offset:
        return stamp + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{stamp}{sign}{hours:02d}:{mins:02d}"


def _hostname(netloc: str) -> str:
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[1:].partition("]")[0]
    return host.partition(":")[0]


def searchable_url(url: str) -> str:
    """Return the index key of ``url``: the reversed host, ")" and the request URI."""
    parts = urlsplit(url)
    host = ",".join(reversed(_hostname(parts.netloc).split(".")))
    request_uri = parts.path or "/"
    if parts.query:
        request_uri += "?" + parts.query
    return f"{host}){request_uri}"


def _header(headers: Mapping[str, Any], name: str) -> str:
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        value = next((v for k, v in headers.items() if k.lower() == lowered), "")
    if isinstance(value, (list, tuple)):
        return value[0] if value else ""
    return str(value)


def _zipinfo(name: str, compress_type: int) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=time.localtime()[:6])
    info.compress_type = compress_type
    return info


@dataclass
class IndexEntry:
    """One line of the archive index, pointing at a WARC record."""

    url: str = ""
    offset: int = 0
    status: str = ""
    length: int = 0
    mime: str = ""
    filename: str = ""
    digest: str = ""
    record_digest: str = ""
    time: datetime | None = field(default=None, compare=False, repr=False)

    def to_json(self) -> str:
        """Serialise the entry as it is stored in the index."""
        return _go_json(
            {
                "url": self.url,
                "offset": self.offset,
                "status": self.status,
                "length": self.length,
                "mime": self.mime,
                "filename": self.filename,
                "digest": self.digest,
                "recordDigest": self.record_digest,
            }
        )

    @classmethod
    def from_json(cls, text: str) -> IndexEntry:
        """Parse an entry from its index JSON, raising ValueError if invalid."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"index entry is not an object: {text}")

        def pick(key: str, kind: type) -> Any:
            value = data.get(key)
            if value is None:
                return kind()
            if kind is int and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ValueError(f"invalid value for {key!r}: {value!r}")
            if kind is int:
                if value != int(value):
                    raise ValueError(f"invalid value for {key!r}: {value!r}")
                return int(value)
            if not isinstance(value, str):
                raise ValueError(f"invalid value for {key!r}: {value!r}")
            return value

        return cls(
            url=pick("url", str),
            offset=pick("offset", int),
            status=pick("status", str),
            length=pick("length", int),
            mime=pick("mime", str),
            filename=pick("filename", str),
            digest=pick("digest", str),
            record_digest=pick("recordDigest", str),
        )


@dataclass
class PageEntry:
    """One line of the pages list."""

    url: str
    ts: str

    def to_json(self) -> str:
        return _go_json({"url": self.url, "ts": self.ts})


def _response_head(response: HTTPResponse) -> bytes:
    major, minor = response.version
    status = f"{response.status_code} {response.reason}"
    lines = [f"HTTP/{major}.{minor} {response.status_code} {status}\r\n"]
    for key, values in response.headers.items():
        items: Iterable[Any] = values if isinstance(values, (list, tuple)) else (values,)
        lines.extend(f"{key}: {value}\r\n" for value in items)
    lines.append("\r\n")
    return "".join(lines).encode()


class ArchiveWriter:
    """Creates a WACZ file and appends response records to it."""

    def __init__(self, wacz_path: str | Path) -> None:
        self.path = Path(wacz_path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._zip = zipfile.ZipFile(self.path, "w")
        try:
            self._warc = self._zip.open(
                _zipinfo(WARC_NAME, zipfile.ZIP_STORED), "w", force_zip64=True
            )
        except BaseException:
            self._zip.close()
            raise
        self._entries: list[IndexEntry] = []
        self._offset = 0
        self._closed = False

    def add_record(self, response: HTTPResponse) -> IndexEntry:
        """Append ``response`` as a WARC response record and return its index entry."""
        if self._closed:
            raise ValueError("archive is closed")

        body = bytes(response.body)
        content = _response_head(response) + body
        now = datetime.now().astimezone().replace(microsecond=0)
        mime = _header(response.headers, "Content-Type")

        headers = [
            ("Warc-Type", "response"),
            ("Warc-Date", _rfc3339(now)),
            ("Warc-Target-Uri", response.url),
            ("Content-Type", mime),
            ("Warc-Record-Id", f"<urn:uuid:{uuid.uuid4()}>"),
            ("Content-Length", str(len(content))),
        ]
        record = (
            b"WARC/1.0\r\n"
            + "".join(f"{key}: {value}\r\n" for key, value in headers).encode()
            + b"\r\n"
            + content
            + b"\r\n\r\n"
        )
        self._warc.write(record)

        entry = IndexEntry(
            url=response.url,
            offset=self._offset,
            status=str(response.status_code),
            length=len(record),
            mime=mime,
            filename=INDEX_FILENAME,
            digest="sha-256:" + hashlib.sha256(body).hexdigest(),
            record_digest="sha256:" + hashlib.sha256(content).hexdigest(),
            time=now,
        )
        self._entries.append(entry)
        self._offset += len(record)
        return entry

    def close(self) -> None:
        """Finish the archive, writing the index, pages and datapackage files."""
        if self._closed:
            return
        self._closed = True
        try:
            self._warc.close()
            self._write_index()
            self._write_pages()
        finally:
            self._zip.close()
        self._write_datapackage()

    def __enter__(self) -> ArchiveWriter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _write_index(self) -> None:
        lines = sorted(
            f"{searchable_url(e.url)} {e.time.strftime('%Y%m%d%H%M%S') if e.time else ''} "
            f"{e.to_json()}\n"
            for e in self._entries
        )
        self._zip.writestr(_zipinfo(INDEX_NAME, zipfile.ZIP_STORED), "".join(lines))

    def _write_pages(self) -> None:
        lines = [PAGES_HEADER + "\n"]
        lines.extend(
            PageEntry(url=e.url, ts=_rfc3339(e.time) if e.time else "").to_json() + "\n"
            for e in self._entries
        )
        self._zip.writestr(_zipinfo(PAGES_NAME, zipfile.ZIP_DEFLATED), "".join(lines))

    def _write_datapackage(self) -> None:
        with zipfile.ZipFile(self.path, "a") as archive:
            resources = [
                {
                    "name": PurePosixPath(info.filename).name,
                    "path": info.filename,
                    "hash": "sha256:" + self._member_hash(archive, info),
                    "bytes": info.file_size,
                }
                for info in archive.infolist()
            ]
            datapackage = json.dumps(
                {"profile": "data-package", "wacz_version": WACZ_VERSION, "resources": resources},
                indent=2,
                sort_keys=True,
                ensure_ascii=False,
            ).encode()
            archive.writestr(_zipinfo(DATAPACKAGE_NAME, zipfile.ZIP_DEFLATED), datapackage)

            digest = json.dumps(
                {
                    "path": DATAPACKAGE_NAME,
                    "hash": "sha256" + hashlib.sha256(datapackage).hexdigest(),
                },
                indent=2,
                sort_keys=True,
            )
            archive.writestr(_zipinfo(DIGEST_NAME, zipfile.ZIP_DEFLATED), digest)

    @staticmethod
    def _member_hash(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> str:
        digest = hashlib.sha256()
        with archive.open(info) as fh:
            while chunk := fh.read(_CHUNK):
                digest.update(chunk)
        return digest.hexdigest()