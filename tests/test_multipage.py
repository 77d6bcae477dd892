import sqlite3

import pytest

from seonaut.issues.errors import ErrorType
from seonaut.issues.multipage import MultipageIssueReporter, SqlReporter

SCHEMA = """
CREATE TABLE pagereports (
    id INTEGER PRIMARY KEY,
    crawl_id INTEGER,
    url TEXT,
    url_hash TEXT,
    redirect_hash TEXT DEFAULT '',
    canonical TEXT DEFAULT '',
    media_type TEXT DEFAULT 'text/html',
    status_code INTEGER DEFAULT 200,
    body_hash TEXT DEFAULT '',
    title TEXT DEFAULT '',
    description TEXT DEFAULT '',
    lang TEXT DEFAULT '',
    noindex INTEGER DEFAULT 0,
    crawled INTEGER DEFAULT 1
);
CREATE TABLE links (
    id INTEGER PRIMARY KEY,
    pagereport_id INTEGER,
    crawl_id INTEGER,
    url TEXT,
    url_hash TEXT,
    nofollow INTEGER DEFAULT 0
);
CREATE TABLE hreflangs (
    id INTEGER PRIMARY KEY,
    pagereport_id INTEGER,
    crawl_id INTEGER,
    from_hash TEXT,
    to_hash TEXT,
    to_lang TEXT
);
"""


@pytest.fixture
def db():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA)
    yield conn
    conn.close()


def add_page(db, pid, url_hash, crawl_id=1, **fields):
    values = {"id": pid, "crawl_id": crawl_id, "url": f"https://example.com/{url_hash}",
              "url_hash": url_hash}
    values.update(fields)
    cols = ", ".join(values)
    marks = ", ".join("?" for _ in values)
    db.execute(f"INSERT INTO pagereports ({cols}) VALUES ({marks})", tuple(values.values()))


def add_link(db, pagereport_id, url_hash, crawl_id=1, nofollow=0):
    db.execute(
        "INSERT INTO links (pagereport_id, crawl_id, url, url_hash, nofollow) VALUES (?, ?, ?, ?, ?)",
        (pagereport_id, crawl_id, f"https://example.com/{url_hash}", url_hash, nofollow),
    )


def add_hreflang(db, pagereport_id, from_hash, to_hash, lang, crawl_id=1):
    db.execute(
        "INSERT INTO hreflangs (pagereport_id, crawl_id, from_hash, to_hash, to_lang) "
        "VALUES (?, ?, ?, ?, ?)",
        (pagereport_id, crawl_id, from_hash, to_hash, lang),
    )


def ids(reporter):
    return sorted(reporter.pstream)


def test_duplicated_content(db):
    add_page(db, 1, "a", body_hash="h")
    add_page(db, 2, "b", body_hash="h")
    add_page(db, 3, "c", body_hash="x")
    add_page(db, 4, "d", crawl_id=2, body_hash="h")
    reporter = SqlReporter(db).duplicated_content(1)
    assert reporter.error_type is ErrorType.DUPLICATED_CONTENT
    assert ids(reporter) == [1, 2]


def test_redirect_chains(db):
    add_page(db, 1, "a", redirect_hash="b")
    add_page(db, 2, "b", redirect_hash="c")
    add_page(db, 3, "c")
    reporter = SqlReporter(db).redirect_chains_reporter(1)
    assert reporter.error_type is ErrorType.REDIRECT_CHAIN
    assert ids(reporter) == [1]


def test_redirect_loops(db):
    add_page(db, 1, "a", redirect_hash="b")
    add_page(db, 2, "b", redirect_hash="a")
    add_page(db, 3, "c", redirect_hash="a")
    reporter = SqlReporter(db).redirect_loops_reporter(1)
    assert reporter.error_type is ErrorType.REDIRECT_LOOP
    assert ids(reporter) == [1, 2]


def test_duplicated_title(db):
    add_page(db, 1, "a", title="Home", lang="en")
    add_page(db, 2, "b", title="Home", lang="en")
    add_page(db, 3, "c", title="Other", lang="en")
    add_page(db, 4, "d", title="Home", lang="en", status_code=404)
    add_page(db, 5, "e", title="Home", lang="fr")
    reporter = SqlReporter(db).duplicated_title_reporter(1)
    assert reporter.error_type is ErrorType.DUPLICATED_TITLE
    assert ids(reporter) == [1, 2]


def test_duplicated_description(db):
    add_page(db, 1, "a", description="Same text", lang="en")
    add_page(db, 2, "b", description="Same text", lang="en")
    add_page(db, 3, "c", description="Different", lang="en")
    add_page(db, 4, "d", description="", lang="en")
    reporter = SqlReporter(db).duplicated_description_reporter(1)
    assert reporter.error_type is ErrorType.DUPLICATED_DESCRIPTION
    assert ids(reporter) == [1, 2]


def test_orphan_pages(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b")
    add_link(db, 2, "a")
    reporter = SqlReporter(db).orphan_pages_reporter(1)
    assert reporter.error_type is ErrorType.ORPHAN
    assert ids(reporter) == [2]


def test_no_follow_indexable(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b")
    add_page(db, 3, "c", noindex=1)
    add_link(db, 1, "b", nofollow=1)
    add_link(db, 2, "c", nofollow=1)
    reporter = SqlReporter(db).no_follow_indexable_reporter(1)
    assert reporter.error_type is ErrorType.INTERNAL_NO_FOLLOW_INDEXABLE
    assert ids(reporter) == [1]


def test_follow_no_follow(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b")
    add_page(db, 3, "c")
    add_link(db, 1, "b", nofollow=0)
    add_link(db, 3, "b", nofollow=1)
    add_link(db, 1, "c", nofollow=0)
    reporter = SqlReporter(db).follow_no_follow_reporter(1)
    assert reporter.error_type is ErrorType.INCOMING_FOLLOW_NOFOLLOW
    assert ids(reporter) == [2]


def test_missing_hreflang_return_links(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b")
    add_hreflang(db, 1, "a", "b", "en")
    sql = SqlReporter(db)
    reporter = sql.missing_hreflang_return_links(1)
    assert reporter.error_type is ErrorType.HREFLANGS_RETURN_LINK
    assert ids(reporter) == [1]

    add_hreflang(db, 2, "b", "a", "fr")
    assert ids(sql.missing_hreflang_return_links(1)) == []


def test_hreflangs_to_non_canonical(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b", canonical="https://example.com/a")
    add_hreflang(db, 1, "a", "b", "en")
    reporter = SqlReporter(db).hreflangs_to_non_canonical(1)
    assert reporter.error_type is ErrorType.HREFLANG_TO_NON_CANONICAL
    assert ids(reporter) == [2]


def test_hreflang_noindexable(db):
    add_page(db, 1, "a", noindex=1)
    add_page(db, 2, "b")
    add_hreflang(db, 1, "a", "b", "en")
    add_hreflang(db, 2, "b", "a", "fr")
    reporter = SqlReporter(db).hreflang_noindexable(1)
    assert reporter.error_type is ErrorType.HREFLANG_NOINDEXABLE
    assert ids(reporter) == [1]


def test_multiple_lang_reference(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b")
    add_page(db, 3, "c")
    add_hreflang(db, 1, "a", "b", "en")
    add_hreflang(db, 3, "c", "b", "fr")
    add_hreflang(db, 1, "a", "c", "fr")
    reporter = SqlReporter(db).multiple_lang_reference(1)
    assert reporter.error_type is ErrorType.MULTIPLE_LANG_REFERENCE
    assert ids(reporter) == [2]


def test_hreflang_to_redirect_and_error(db):
    add_page(db, 1, "a")
    add_page(db, 2, "b", status_code=301)
    add_page(db, 3, "c")
    add_page(db, 4, "d", status_code=404)
    add_hreflang(db, 1, "a", "b", "en")
    add_hreflang(db, 3, "c", "d", "en")
    sql = SqlReporter(db)
    redirect = sql.hreflang_to_redirect(1)
    error = sql.hreflang_to_error(1)
    assert redirect.error_type is ErrorType.HREFLANG_TO_REDIRECT
    assert error.error_type is ErrorType.HREFLANG_TO_ERROR
    assert ids(redirect) == [1]
    assert ids(error) == [3]


def test_canonicalized_to_non_canonical(db):
    add_page(db, 1, "a", canonical="https://example.com/x")
    add_page(db, 2, "b", canonical="https://example.com/a")
    reporter = SqlReporter(db).canonicalized_to_non_canonical(1)
    assert reporter.error_type is ErrorType.CANONICALIZED_TO_NON_CANONICAL
    assert ids(reporter) == [1]


def test_canonicalized_to_non_indexable(db):
    add_page(db, 1, "a", canonical="https://example.com/x")
    add_page(db, 2, "b", noindex=1, canonical="https://example.com/a")
    reporter = SqlReporter(db).canonicalized_to_non_indexable(1)
    assert reporter.error_type is ErrorType.CANONICALIZED_TO_NON_INDEXABLE
    assert ids(reporter) == [2]


def test_canonicalized_to_redirect_and_error(db):
    add_page(db, 1, "a", canonical="https://example.com/b")
    add_page(db, 2, "b", status_code=301)
    add_page(db, 3, "c", canonical="https://example.com/d")
    add_page(db, 4, "d", status_code=500)
    sql = SqlReporter(db)
    redirect = sql.canonicalized_to_redirect(1)
    error = sql.canonicalized_to_error(1)
    assert redirect.error_type is ErrorType.CANONICALIZED_TO_REDIRECT
    assert error.error_type is ErrorType.CANONICALIZED_TO_ERROR
    assert ids(redirect) == [1]
    assert ids(error) == [3]


def test_other_crawls_are_ignored(db):
    add_page(db, 1, "a", crawl_id=2, body_hash="h")
    add_page(db, 2, "b", crawl_id=2, body_hash="h")
    assert ids(SqlReporter(db).duplicated_content(1)) == []
    assert ids(SqlReporter(db).duplicated_content(2)) == [1, 2]


def test_get_all_reporters(db):
    add_page(db, 1, "a")
    reporters = SqlReporter(db).get_all_reporters()
    results = [callback(1) for callback in reporters]
    assert all(isinstance(r, MultipageIssueReporter) for r in results)
    assert [r.error_type for r in results] == [
        ErrorType.DUPLICATED_CONTENT,
        ErrorType.REDIRECT_CHAIN,
        ErrorType.REDIRECT_LOOP,
        ErrorType.DUPLICATED_TITLE,
        ErrorType.DUPLICATED_DESCRIPTION,
        ErrorType.ORPHAN,
        ErrorType.INTERNAL_NO_FOLLOW_INDEXABLE,
        ErrorType.INCOMING_FOLLOW_NOFOLLOW,
        ErrorType.HREFLANGS_RETURN_LINK,
        ErrorType.HREFLANG_TO_NON_CANONICAL,
        ErrorType.HREFLANG_NOINDEXABLE,
        ErrorType.MULTIPLE_LANG_REFERENCE,
        ErrorType.CANONICALIZED_TO_NON_CANONICAL,
        ErrorType.CANONICALIZED_TO_NON_INDEXABLE,
    ]
    # The single orphan page is the only issue found.
    found = {r.error_type: list(r.pstream) for r in results}
    assert found[ErrorType.ORPHAN] == [1]
    assert sum(len(v) for v in found.values()) == 1


class _RecordingCursor:
    def __init__(self, log):
        self._log = log

    def execute(self, query, args):
        self._log.append((query, args))

    def __iter__(self):
        return iter([(7,), (None,), ("8",)])

    def close(self):
        self._log.append("closed")


class _RecordingConnection:
    def __init__(self):
        self.log = []

    def cursor(self):
        return _RecordingCursor(self.log)


def test_format_paramstyle_rewrites_placeholders():
    conn = _RecordingConnection()
    reporter = SqlReporter(conn, paramstyle="format").redirect_loops_reporter(5)
    assert list(reporter.pstream) == [7, 8]
    query, args = conn.log[0]
    assert "?" not in query
    assert query.count("%s") == 2
    assert args == (5, 5)
    assert conn.log[-1] == "closed"


def test_unknown_paramstyle_is_rejected(db):
    with pytest.raises(ValueError, match="named"):
        SqlReporter(db, paramstyle="named")


def test_query_error_is_raised():
    conn = sqlite3.connect(":memory:")
    try:
        reporter = SqlReporter(conn).orphan_pages_reporter(1)
        assert reporter.error_type is ErrorType.ORPHAN
        with pytest.raises(sqlite3.OperationalError, match="no such table") as info:
            list(reporter.pstream)
        assert "pagereports" in str(info.value)
    finally:
        conn.close()