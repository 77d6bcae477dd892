"""Issue reporters that need data from more than one page of a crawl.

Each reporter runs an SQL query over the stored crawl data and yields the ids
of the page reports that have the issue.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from seonaut.issues.errors import ErrorType

logger = logging.getLogger(__name__)

_PLACEHOLDERS = {"qmark": "?", "format": "%s"}

_HTML = "'text/html'"


@dataclass
class MultipageIssueReporter:
    """The ids of the pages with an issue, paired with the issue type."""

    pstream: Iterator[int]
    error_type: ErrorType


MultipageCallback = Callable[[int], MultipageIssueReporter]


_DUPLICATED_CONTENT = f"""
SELECT page.id
  FROM pagereports AS page
 WHERE page.crawl_id = ?
   AND page.media_type = {_HTML}
   AND page.body_hash <> ''
   AND page.body_hash IN (
         SELECT other.body_hash
           FROM pagereports AS other
          WHERE other.crawl_id = ?
            AND other.media_type = {_HTML}
            AND other.body_hash <> ''
          GROUP BY other.body_hash
         HAVING COUNT(*) > 1)
"""

# The target of a canonical link that is itself canonicalized elsewhere.
_CANONICALIZED_TO_NON_CANONICAL = """
SELECT target.id
  FROM pagereports AS target
  JOIN pagereports AS source ON source.canonical = target.url
 WHERE target.crawl_id = ?
   AND source.crawl_id = ?
   AND target.canonical <> ''
   AND target.canonical <> target.url
   AND target.crawled = 1
   AND source.crawled = 1
"""

_CANONICALIZED_TO_NON_INDEXABLE = """
SELECT page.id
  FROM pagereports AS page
 WHERE page.crawl_id = ?
   AND page.noindex = 1
   AND page.canonical IN (
         SELECT other.url
           FROM pagereports AS other
          WHERE other.crawl_id = ?
            AND other.canonical <> ''
            AND other.canonical <> other.url)
"""

_CANONICALIZED_TO_REDIRECT = """
SELECT page.id
  FROM pagereports AS page
  JOIN pagereports AS target ON target.url = page.canonical
 WHERE page.crawl_id = ?
   AND target.crawl_id = ?
   AND page.canonical <> page.url
   AND target.status_code BETWEEN 300 AND 399
"""

_CANONICALIZED_TO_ERROR = """
SELECT page.id
  FROM pagereports AS page
  JOIN pagereports AS target ON target.url = page.canonical
 WHERE page.crawl_id = ?
   AND target.crawl_id = ?
   AND page.canonical <> page.url
   AND target.status_code >= 400
"""

_DUPLICATED_DESCRIPTION = f"""
SELECT page.id
  FROM pagereports AS page
  JOIN (SELECT description, lang, COUNT(*) AS total
          FROM pagereports
         WHERE crawl_id = ?
           AND media_type = {_HTML}
           AND status_code BETWEEN 200 AND 299
           AND (canonical = '' OR canonical = url)
           AND crawled = 1
         GROUP BY description, lang
        HAVING total > 1) AS dup
    ON dup.description = page.description AND dup.lang = page.lang
 WHERE page.crawl_id = ?
   AND page.media_type = {_HTML}
   AND LENGTH(page.description) > 0
   AND page.status_code BETWEEN 200 AND 299
   AND (page.canonical = '' OR (page.canonical = page.url AND page.crawled = 1))
"""

_MISSING_HREFLANG_RETURN_LINKS = """
SELECT DISTINCT page.id
  FROM hreflangs AS link
  LEFT JOIN hreflangs AS back
         ON back.crawl_id = link.crawl_id AND back.to_hash = link.from_hash
  LEFT JOIN pagereports AS page ON page.id = link.pagereport_id
 WHERE link.crawl_id = ?
   AND link.to_lang <> 'x-default'
   AND page.status_code < 300
   AND back.id IS NULL
   AND (page.canonical = '' OR page.canonical = page.url)
   AND page.crawled = 1
"""

_HREFLANGS_TO_NON_CANONICAL = f"""
SELECT page.id
  FROM pagereports AS page
  LEFT JOIN hreflangs AS link
         ON link.to_hash = page.url_hash AND link.crawl_id = ?
 WHERE page.crawl_id = ?
   AND page.media_type = {_HTML}
   AND page.status_code BETWEEN 200 AND 299
   AND page.canonical IS NOT NULL
   AND page.canonical <> ''
   AND page.canonical <> page.url
   AND link.id IS NOT NULL
   AND page.crawled = 1
"""

_HREFLANG_NOINDEXABLE = """
SELECT page.id
  FROM pagereports AS page
 WHERE page.crawled = 1
   AND page.id IN (
         SELECT DISTINCT link.pagereport_id
           FROM hreflangs AS link
           JOIN pagereports AS source
             ON source.id = link.pagereport_id AND source.crawl_id = link.crawl_id
          WHERE link.crawl_id = ?
            AND source.noindex = 1
            AND source.crawled = 1)
"""

_HREFLANG_TO_REDIRECT = """
SELECT page.id
  FROM pagereports AS page
  JOIN hreflangs AS link ON link.pagereport_id = page.id
  JOIN pagereports AS target ON target.url_hash = link.to_hash
 WHERE page.crawl_id = ?
   AND target.status_code BETWEEN 300 AND 399
"""

_HREFLANG_TO_ERROR = """
SELECT page.id
  FROM pagereports AS page
  JOIN hreflangs AS link ON link.pagereport_id = page.id
  JOIN pagereports AS target ON target.url_hash = link.to_hash
 WHERE page.crawl_id = ?
   AND target.status_code >= 400
"""

_MULTIPLE_LANG_REFERENCE = """
SELECT page.id
  FROM hreflangs AS link
  LEFT JOIN pagereports AS page
         ON page.url_hash = link.to_hash AND link.crawl_id = ?
 WHERE page.crawl_id = ?
   AND link.to_lang <> 'x-default'
 GROUP BY link.to_hash, page.id
HAVING COUNT(DISTINCT link.to_lang) > 1
"""

_NO_FOLLOW_INDEXABLE = """
SELECT page.id
  FROM pagereports AS page
  JOIN (SELECT nf.pagereport_id
          FROM (SELECT DISTINCT l.pagereport_id, l.url_hash
                  FROM links AS l
                 WHERE l.crawl_id = ? AND l.nofollow = 1) AS nf
          JOIN pagereports AS target ON target.url_hash = nf.url_hash
         WHERE target.noindex = 0
           AND target.crawled = 1
           AND target.crawl_id = ?) AS src
    ON src.pagereport_id = page.id
"""

_FOLLOW_NO_FOLLOW = """
SELECT page.id
  FROM pagereports AS page
 WHERE page.crawl_id = ?
   AND page.url_hash IN (
         SELECT l.url_hash
           FROM links AS l
          WHERE l.crawl_id = ?
          GROUP BY l.url_hash
         HAVING COUNT(DISTINCT l.nofollow) > 1)
"""

_ORPHAN_PAGES = f"""
SELECT page.id
  FROM pagereports AS page
  LEFT JOIN links AS l
         ON l.url_hash = page.url_hash AND l.crawl_id = page.crawl_id
 WHERE page.crawl_id = ?
   AND page.media_type = {_HTML}
   AND l.url IS NULL
"""

_REDIRECT_CHAINS = """
SELECT src.id
  FROM pagereports AS src
  LEFT JOIN pagereports AS dst ON dst.url_hash = src.redirect_hash
 WHERE src.crawl_id = ?
   AND dst.crawl_id = ?
   AND src.redirect_hash <> ''
   AND dst.redirect_hash <> ''
   AND src.crawled = 1
   AND dst.crawled = 1
"""

_REDIRECT_LOOPS = """
SELECT src.id
  FROM pagereports AS src
  JOIN pagereports AS dst
    ON dst.url_hash = src.redirect_hash AND dst.redirect_hash = src.url_hash
 WHERE src.crawl_id = ?
   AND dst.crawl_id = ?
   AND src.crawled = 1
   AND dst.crawled = 1
"""

_DUPLICATED_TITLE = f"""
SELECT page.id
  FROM pagereports AS page
  JOIN (SELECT title, lang, COUNT(*) AS total
          FROM pagereports
         WHERE crawl_id = ?
           AND media_type = {_HTML}
           AND status_code BETWEEN 200 AND 299
           AND (canonical = '' OR canonical = url)
           AND crawled = 1
         GROUP BY title, lang
        HAVING total > 1) AS dup
    ON dup.title = page.title AND dup.lang = page.lang
 WHERE page.crawl_id = ?
   AND page.media_type = {_HTML}
   AND LENGTH(page.title) > 0
   AND page.status_code BETWEEN 200 AND 299
   AND (page.canonical = '' OR page.canonical = page.url)
   AND page.crawled = 1
"""


class SqlReporter:
    """Runs the multipage issue queries against a DB-API connection.

    ``paramstyle`` is the placeholder style of the database driver:
    ``"qmark"`` (``?``, as sqlite3) or ``"format"`` (``%s``, as pymysql).
    """

    def __init__(self, db: Any, paramstyle: str = "qmark") -> None:
        if paramstyle not in _PLACEHOLDERS:
            raise ValueError(f"unsupported paramstyle: {paramstyle!r}")
        self._db = db
        self._placeholder = _PLACEHOLDERS[paramstyle]

    def get_all_reporters(self) -> list[MultipageCallback]:
        """Return the reporters run after every crawl, in order."""
        content = [self.duplicated_content]
        status = [self.redirect_chains_reporter, self.redirect_loops_reporter]
        text = [self.duplicated_title_reporter, self.duplicated_description_reporter]
        links = [
            self.orphan_pages_reporter,
            self.no_follow_indexable_reporter,
            self.follow_no_follow_reporter,
        ]
        hreflangs = [
            self.missing_hreflang_return_links,
            self.hreflangs_to_non_canonical,
            self.hreflang_noindexable,
            self.multiple_lang_reference,
        ]
        canonicals = [
            self.canonicalized_to_non_canonical,
            self.canonicalized_to_non_indexable,
        ]
        return [*content, *status, *text, *links, *hreflangs, *canonicals]

    def duplicated_content(self, crawl_id: int) -> MultipageIssueReporter:
        """HTML pages that share the exact same body."""
        return self._twice(_DUPLICATED_CONTENT, ErrorType.DUPLICATED_CONTENT, crawl_id)

    def canonicalized_to_non_canonical(self, crawl_id: int) -> MultipageIssueReporter:
        """Canonical targets that are themselves canonicalized elsewhere."""
        return self._twice(
            _CANONICALIZED_TO_NON_CANONICAL, ErrorType.CANONICALIZED_TO_NON_CANONICAL, crawl_id
        )

    def canonicalized_to_non_indexable(self, crawl_id: int) -> MultipageIssueReporter:
        """Non-indexable pages that are the canonical of other pages."""
        return self._twice(
            _CANONICALIZED_TO_NON_INDEXABLE, ErrorType.CANONICALIZED_TO_NON_INDEXABLE, crawl_id
        )

    def canonicalized_to_redirect(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages canonicalized to redirects."""
        return self._twice(
            _CANONICALIZED_TO_REDIRECT, ErrorType.CANONICALIZED_TO_REDIRECT, crawl_id
        )

    def canonicalized_to_error(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages canonicalized to pages with a 40x or 50x status code."""
        return self._twice(_CANONICALIZED_TO_ERROR, ErrorType.CANONICALIZED_TO_ERROR, crawl_id)

    def duplicated_description_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages sharing a description with another page of the same language."""
        return self._twice(_DUPLICATED_DESCRIPTION, ErrorType.DUPLICATED_DESCRIPTION, crawl_id)

    def missing_hreflang_return_links(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages with hreflang links that are not linked back."""
        return self._once(
            _MISSING_HREFLANG_RETURN_LINKS, ErrorType.HREFLANGS_RETURN_LINK, crawl_id
        )

    def hreflangs_to_non_canonical(self, crawl_id: int) -> MultipageIssueReporter:
        """Non-canonical pages that are the target of hreflang links."""
        return self._twice(
            _HREFLANGS_TO_NON_CANONICAL, ErrorType.HREFLANG_TO_NON_CANONICAL, crawl_id
        )

    def hreflang_noindexable(self, crawl_id: int) -> MultipageIssueReporter:
        """Non-indexable pages that have hreflang links."""
        return self._once(_HREFLANG_NOINDEXABLE, ErrorType.HREFLANG_NOINDEXABLE, crawl_id)

    def hreflang_to_redirect(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages with hreflang links pointing to redirects."""
        return self._once(_HREFLANG_TO_REDIRECT, ErrorType.HREFLANG_TO_REDIRECT, crawl_id)

    def hreflang_to_error(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages with hreflang links pointing to 40x or 50x pages."""
        return self._once(_HREFLANG_TO_ERROR, ErrorType.HREFLANG_TO_ERROR, crawl_id)

    def multiple_lang_reference(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages referenced from hreflang links with more than one language."""
        return self._twice(
            _MULTIPLE_LANG_REFERENCE, ErrorType.MULTIPLE_LANG_REFERENCE, crawl_id
        )

    def no_follow_indexable_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages with nofollow internal links to indexable pages."""
        return self._twice(
            _NO_FOLLOW_INDEXABLE, ErrorType.INTERNAL_NO_FOLLOW_INDEXABLE, crawl_id
        )

    def follow_no_follow_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages linked internally both with and without nofollow."""
        return self._twice(_FOLLOW_NO_FOLLOW, ErrorType.INCOMING_FOLLOW_NOFOLLOW, crawl_id)

    def orphan_pages_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """HTML pages with no incoming links."""
        return self._once(_ORPHAN_PAGES, ErrorType.ORPHAN, crawl_id)

    def redirect_chains_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages redirecting to pages that redirect again."""
        return self._twice(_REDIRECT_CHAINS, ErrorType.REDIRECT_CHAIN, crawl_id)

    def redirect_loops_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages redirecting to pages that redirect back to them."""
        return self._twice(_REDIRECT_LOOPS, ErrorType.REDIRECT_LOOP, crawl_id)

    def duplicated_title_reporter(self, crawl_id: int) -> MultipageIssueReporter:
        """Pages sharing a title with another page of the same language."""
        return self._twice(_DUPLICATED_TITLE, ErrorType.DUPLICATED_TITLE, crawl_id)

    def _once(self, query: str, error_type: ErrorType, crawl_id: int) -> MultipageIssueReporter:
        return MultipageIssueReporter(self._page_report_ids(query, (crawl_id,)), error_type)

    def _twice(self, query: str, error_type: ErrorType, crawl_id: int) -> MultipageIssueReporter:
        return MultipageIssueReporter(
            self._page_report_ids(query, (crawl_id, crawl_id)), error_type
        )

    def _page_report_ids(self, query: str, args: Sequence[Any]) -> Iterator[int]:
        sql = query.replace("?", self._placeholder)
        cursor = self._db.cursor()
        try:
            try:
                cursor.execute(sql, tuple(args))
            except Exception:
                logger.error("Error executing query: %s, Args: %r", sql, args)
                raise
            for row in cursor:
                try:
                    yield int(row[0])
                except (TypeError, ValueError, IndexError) as exc:
                    logger.error(
                        "Error scanning results for query: %s, Args: %r, Error: %s",
                        sql,
                        args,
                        exc,
                    )
        finally:
            cursor.close()