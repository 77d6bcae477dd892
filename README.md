# seonaut

A library for auditing websites for search engine optimisation problems.
It crawls a site while honouring robots.txt and sitemaps, stores fetched
responses in a WACZ web archive, and provides checks that find issues in
single pages and across a whole crawl.

## Modules

### `seonaut.config`

`load_config(config_file)` reads a TOML file and returns a `Config` with
the sections `crawler` (`CrawlerConfig`), `http_server`
(`HTTPServerConfig`), `db` (`DBConfig`) and `ui` (`UIConfig`). It looks
for `config_file + ".toml"` first and then for `config_file` itself, and
raises `FileNotFoundError` when neither exists. Table and key names are
matched without regard to case. A table missing from the file leaves its
section as `None`, and a value of the wrong kind raises `ValueError`.

```toml
[crawler]
agent = "seonaut-bot"

[server]
host = "localhost"
port = 9000
url = "http://localhost:9000"

[database]
server = "localhost"
port = 3306
user = "user"
password = "password"
database = "seonaut"

[UI]
language = "en"
```

### `seonaut.crawler`

- `basic_client.BasicClient` sends GET and HEAD requests with the user
  agent from `ClientOptions`. It also sends HTTP basic authentication to
  the hosts listed in `basic_auth_domains`, when `auth_user` is set.
  Requests go through a transport with a `send(HTTPRequest)` method that
  returns an `HTTPResponse`. The default is `RequestsTransport`, which uses
  a requests session, does not follow redirects and records the time to
  first byte. `get` and `head` return a `ClientResponse`.
- `robots_checker.RobotsChecker` fetches robots.txt once per host and
  caches it. It provides `is_blocked(url)`, `exists(url)` and
  `get_sitemaps(url)`.
- `sitemap_checker.SitemapChecker` has two methods:
  - `sitemap_exists(urls)` returns whether any of the URLs answers a HEAD
    request with a 2xx status.
  - `parse_sitemaps(urls, callback)` expands sitemap indexes. It then
    calls `callback` for every `<loc>` in the sitemaps and stops once
    the limit is reached.
- `urlstorage.URLStorage` is a thread-safe set of seen URLs. It supports
  `seen`, `add`, `in`, `len` and iteration.
- `request_queue.RequestQueue` is a thread-safe first-in, first-out queue
  of `RequestMessage` items.
  - `poll(timeout)` returns the next item, or `None` when the queue is
    closed or the wait runs out.
  - `active()` stays true until every polled item has been passed to
    `ack(url)`.
  - `done()` closes the queue.
- `crawler.Crawler(url, options, client)` runs the crawl with two worker
  threads and a random delay before each request.
  - `add_request` queues a `RequestMessage`. It raises `AlreadyVisited`,
    `DomainNotAllowed` or `BlockedByRobotsTxt` (all subclasses of
    `CrawlerError`) when the URL is refused.
  - `on_response` sets a callback, and `start()` runs the crawl.
  - Each fetched URL reaches the callback as a `ResponseMessage`.
  - The crawl ends when the queue runs dry or `CrawlOptions.crawl_limit`
    responses have been handled. It also ends on `stop()` or when the
    timeout is reached.
  - `get_status()` returns a `CrawlerStatus`. `sitemap_exists()`,
    `robotstxt_exists()` and `sitemap_is_blocked()` report what was found.

With `crawl_sitemap` set, the crawler queues the URLs listed in the
site's sitemaps. It does not read links out of the pages it fetches; to
follow links, parse them in the callback and pass them to `add_request`.

```python
from seonaut.crawler.basic_client import BasicClient, ClientOptions
from seonaut.crawler.crawler import Crawler, CrawlerError, CrawlOptions
from seonaut.crawler.request_queue import RequestMessage

client = BasicClient(ClientOptions(user_agent="seonaut-bot"))
crawler = Crawler(
    "https://example.com/",
    CrawlOptions(crawl_limit=100, crawl_sitemap=True),
    client,
)

def handle(message):
    status = message.response.status_code if message.response else message.error
    print(message.url, status)

crawler.on_response(handle)
try:
    crawler.add_request(RequestMessage(url="https://example.com/"))
except CrawlerError as exc:
    print("refused:", exc)
crawler.start()
```

### `seonaut.archiver`

`writer.ArchiveWriter(path)` creates a WACZ file and works as a context
manager.

- `add_record(response)` appends an `HTTPResponse` as a WARC response
  record and returns its `IndexEntry`.
- Closing the writer adds the sorted CDXJ index, the `pages/pages.jsonl`
  list, `datapackage.json` and `datapackage-digest.json`.

`reader.ArchiveReader(path).read_archive(url)` finds the URL in the index
and returns the record's content as text: the HTTP status line, the
headers and the body. It raises `LookupError` when the URL is not in the
index.

```python
from seonaut.archiver.reader import ArchiveReader
from seonaut.archiver.writer import ArchiveWriter
from seonaut.crawler.basic_client import HTTPResponse

with ArchiveWriter("crawl.wacz") as archive:
    archive.add_record(HTTPResponse(
        status_code=200,
        headers={"Content-Type": "text/html"},
        body=b"<html></html>",
        url="https://example.com/",
        reason="OK",
    ))

print(ArchiveReader("crawl.wacz").read_archive("https://example.com/"))
```

### `seonaut.issues`

`errors.ErrorType` is an `IntEnum` of every issue type.

The single-page checks live in the modules of `seonaut.issues.page`:
`base`, `canonical`, `content`, `description`, `form`, `headings`,
`hreflangs` and `images`.

- Each `new_*` factory returns a `PageIssueReporter` holding an
  `error_type` and a `callback`. Examples are `new_depth_reporter()`,
  `new_canonical_mismatch_reporter()` and `new_dom_size_reporter(size)`.
- The callback takes three arguments: a `PageReport`, the page parsed
  with lxml (or `None`), and the response headers.
- It returns `True` when the page has the issue.

```python
from lxml import html

from seonaut.issues.page.base import PageReport
from seonaut.issues.page.canonical import new_canonical_multiple_tags_reporter

doc = html.fromstring(
    '<html><head>'
    '<link rel="canonical" href="https://example.com/a">'
    '<link rel="canonical" href="https://example.com/b">'
    '</head><body></body></html>'
)
page = PageReport(url="https://example.com/a", crawled=True,
                  media_type="text/html", status_code=200)
reporter = new_canonical_multiple_tags_reporter()
assert reporter.callback(page, doc, {}) is True
```

`multipage.SqlReporter(db, paramstyle="qmark")` runs SQL queries over a
DB-API connection. Use `"format"` for drivers that take `%s`
placeholders.

- Each method takes a crawl id and returns a `MultipageIssueReporter`.
  Its `pstream` yields the ids of the affected page reports, and its
  `error_type` names the issue.
- The issues covered include duplicated titles, descriptions and
  content, redirect chains and loops, and orphan pages. They also cover
  nofollow links, and hreflang and canonical problems.
- `get_all_reporters()` returns the default list of these methods.

## What this package does not do

- It has no command-line program, web server or user interface.
- It does not create or fill a database. `SqlReporter` expects existing
  `pagereports`, `hreflangs` and `links` tables.
- It does not build a `PageReport` from a fetched page. The caller fills
  in the title, description, headings, images and hreflangs.

## Requirements

Python 3.11 or later, with `lxml` and `requests`. Install the `test`
extra to run the tests with pytest.