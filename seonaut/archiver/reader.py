"""Reads response records back out of a WACZ web archive."""

from __future__ import annotations

import bisect
import zipfile
from pathlib import Path

from seonaut.archiver.writer import INDEX_NAME, WARC_NAME, IndexEntry, searchable_url


def _member(wacz: zipfile.ZipFile, name: str) -> zipfile.ZipInfo:
    try:
        return wacz.getinfo(name)
    except KeyError:
        raise KeyError(f"{name} not found in archive") from None


def _record_content(buffer: bytes) -> bytes:
    head, sep, rest = buffer.partition(b"\r\n\r\n")
    if not sep or not head.startswith(b"WARC/"):
        raise ValueError("invalid WARC record")
    length = None
    for line in head.split(b"\r\n")[1:]:
        key, _, value = line.partition(b":")
        if key.strip().lower() == b"content-length":
            length = int(value.strip())
    return rest if length is None else rest[:length]


class ArchiveReader:
    """Looks up archived responses by URL."""

    def __init__(self, wacz_path: str | Path) -> None:
        self.wacz_path = Path(wacz_path)

    def read_archive(self, url_str: str) -> str:
        """Return the archived record content for ``url_str``."""
        with zipfile.ZipFile(self.wacz_path) as wacz:
            entry = self._cdx_entry(wacz, url_str)
            with wacz.open(_member(wacz, WARC_NAME)) as data:
                data.seek(entry.offset)
                buffer = data.read(entry.length)
        if len(buffer) < entry.length:
            raise EOFError("archive record is truncated")
        return _record_content(buffer).decode("utf-8", errors="replace")

    def _cdx_entry(self, wacz: zipfile.ZipFile, url_str: str) -> IndexEntry:
        index = wacz.read(_member(wacz, INDEX_NAME)).decode("utf-8", errors="replace")
        line = self._search(index, searchable_url(url_str))
        start = line.find("{")
        if start == -1:
            raise ValueError(f"invalid IndexEntry {line}")
        return IndexEntry.from_json(line[start:])

    @staticmethod
    def _search(index: str, target: str) -> str:
        lines = [line for line in index.split("\n") if line.strip()]
        position = bisect.bisect_left(lines, target)
        if position < len(lines) and lines[position].startswith(target):
            return lines[position]
        raise LookupError(f"no line starting with '{target}' found")