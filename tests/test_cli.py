import pytest
import responses

from echospider.cli import build_parser, main, parse_duration

PAGE = "<html><head><title>Home</title></head><body></body></html>"


def test_parse_duration_seconds():
    assert parse_duration("1s") == 1.0


def test_parse_duration_zero():
    assert parse_duration("0") == 0.0


def test_parse_duration_units_scale():
    assert parse_duration("1m") == 60 * parse_duration("1s")
    assert parse_duration("1h") == 60 * parse_duration("1m")
    assert parse_duration("1000ms") == parse_duration("1s")
    assert parse_duration("1000us") == parse_duration("1ms")
    assert parse_duration("1000ns") == parse_duration("1µs")


def test_parse_duration_compound_and_fraction():
    assert parse_duration("1m30s") == parse_duration("1m") + parse_duration("30s")
    assert parse_duration("1.5h") == parse_duration("90m")


def test_parse_duration_sign():
    assert parse_duration("-2s") == -parse_duration("2s")
    assert parse_duration("+2s") == parse_duration("2s")


@pytest.mark.parametrize("text", ["", "10", "5x", "s", "-", ".s", "1s2"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parser_defaults():
    args = build_parser().parse_args(["crawl", "http://example.com/"])
    assert args.command == "crawl"
    assert args.url == "http://example.com/"
    assert args.depth == 2
    assert args.workers == 10
    assert args.timeout == 10.0
    assert args.robots is True


def test_parser_flags():
    args = build_parser().parse_args(
        ["crawl", "-d", "3", "-w", "4", "-t", "2m", "--no-robots", "http://example.com/"]
    )
    assert args.depth == 3
    assert args.workers == 4
    assert args.timeout == parse_duration("2m")
    assert args.robots is False


def test_parser_requires_url():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["crawl"])


def test_parser_rejects_bad_duration():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["crawl", "-t", "soon", "http://example.com/"])


def test_main_without_command_prints_help(capsys):
    assert main([]) == 0
    assert "crawl" in capsys.readouterr().out


def test_main_invalid_url(capsys):
    assert main(["crawl", "http://[::1"]) == 1
    assert "Error: Invalid URL" in capsys.readouterr().err


def test_main_crawl_success(capsys):
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.GET, "http://example.com/robots.txt", status=404)
        rsps.add(responses.GET, "http://example.com/", body=PAGE, content_type="text/html")
        code = main(["crawl", "-d", "0", "-w", "2", "http://example.com/"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Crawling http://example.com/ (depth: 0, workers: 2)" in out
    assert "Success http://example.com/ [200] - Home" in out
    assert out.rstrip().endswith("Crawl completed: 1 pages found")


def test_main_crawl_respects_robots(capsys):
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(
            responses.GET,
            "http://example.com/robots.txt",
            body="User-agent: *\nDisallow: /private\n",
        )
        code = main(["crawl", "-d", "0", "http://example.com/private/page"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Error http://example.com/private/page: robots.txt disallows crawling" in out


def test_main_crawl_reports_http_error(capsys):
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.GET, "http://example.com/missing", status=404)
        code = main(["crawl", "--no-robots", "-d", "0", "http://example.com/missing"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Error http://example.com/missing:" in out
    assert "HTTP 404" in out
    assert "Crawl completed: 1 pages found" in out