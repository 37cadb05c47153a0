# echospider

A concurrent web crawler. It starts from one URL and follows links on the same
host down to a chosen depth, using a pool of worker threads. For each HTML page
it records these things:

- the title
- the meta description (`description` or `og:description`)
- the meta keywords
- the internal links
- the images

It can honour `robots.txt`. Requests that fail for transient reasons, such as
timeouts or refused connections, are retried up to three times with a growing
pause between tries.

## Installation

```
pip install .
```

## Command line

Crawl a site:

```
echospider crawl https://example.com --depth 2 --workers 10 --timeout 10s
```

Options of `crawl`:

- `-d`, `--depth`: maximum crawl depth (default 2).
- `-w`, `--workers`: number of worker threads (default 10). Values are clamped to the range 1 to 100.
- `-t`, `--timeout`: request timeout as a duration such as `10s`, `1m30s` or `250ms` (default 10s). A timeout under one second is replaced by 10s. The whole crawl stops after ten times the timeout.
- `-r`, `--robots` / `--no-robots`: respect `robots.txt` (on by default).

Each page prints as a `Success <url> [<status>] - <title>` line or as an
`Error <url>: <reason>` line. A count of pages follows at the end.

Start the web server:

```
echospider server
```

The server listens on port 8080 on all interfaces.

- `GET /` serves `web/index.html`, taken from the current directory, if that file exists. Otherwise it answers 404 `Frontend not found`. Any other path answers 404.
- `POST /api/crawl` takes a JSON body such as

  ```json
  {"url": "https://example.com", "maxDepth": 2, "maxWorkers": 10, "timeout": 10, "respectRobots": true}
  ```

  Keys are matched without regard to case. A `maxDepth` outside 1–10 becomes 2. A `maxWorkers` outside 1–100 becomes 10. A `timeout` in seconds outside 1–60 becomes 10. A missing `url` or a malformed body gives 400. Any method other than POST gives 405. The crawl is limited to five minutes.

  The reply is a JSON list with one object per page. Each object has `url`, `depth`, `statusCode` and `timestamp`. It can also have `title`, `description`, `keywords`, `links`, `images`, `error`, `contentType` and `responseTime` (in nanoseconds), each of them only when it is not empty.

## Library use

```python
from echospider.crawler import Crawler

crawler = Crawler(max_depth=1, max_workers=4, timeout=10, respect_robots=True)
for result in crawler.crawl("https://example.com", time_limit=60):
    print(result.url, result.status_code, result.title, result.error)
print(crawler.stats.snapshot())
```

`Crawler` also accepts these keyword arguments:

- `session`: a `requests.Session`.
- `rate_limit`: the pause before each request, in seconds (default 0.05).
- `max_retries`
- `retry_backoff`
- `user_agent`: default `EchoSpider/1.0`.

`crawl_url(url)` fetches a single page. It returns a `CrawlResult`, and it raises
`echospider.crawler.CrawlError` on failure. `CrawlResult.to_dict()` gives the
JSON form used by the server.

The other modules can be used on their own:

- `echospider.robots`
  - `parse_robots_txt`, `check_rules` and `matches_pattern` work on robots.txt text.
  - `RobotsChecker` fetches and caches robots.txt per site for 24 hours.
  - `RobotsChecker` has the methods `can_crawl`, `get_crawl_delay` and `get_sitemaps`.
- `echospider.extract`
  - `extract_title`, `extract_description`, `extract_keywords`, `extract_links` and `extract_images` work on a BeautifulSoup document.
  - `resolve_url` resolves a link against a base URL. It drops fragments and ignores `mailto:`, `tel:`, `javascript:` and `ftp:` links.
- `echospider.config`
  - `load_config(filename)` reads a `Config` from a JSON file. A missing file gives the defaults.
  - `Config.save(filename)` writes it back.

## What it does not do

- The command line and the server do not read a configuration file. `Config` and its `output_format` are only available to library users.
- Results are printed to the console or returned as JSON. Nothing is written to files or a database.
- `robots.txt` is used only to allow or disallow pages. Crawl delays and sitemaps are recorded but do not change how the crawl runs.

## Running the tests

```
pip install .[test]
pytest
```