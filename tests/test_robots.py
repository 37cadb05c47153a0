import pytest
import requests
import responses

from echospider.robots import (
    RobotsChecker,
    RobotsRules,
    check_rules,
    matches_pattern,
    parse_robots_txt,
)

SAMPLE = """\
# comment line
User-agent: *
Disallow: /private
Allow: /private/public
Crawl-delay: 5

User-agent: EchoSpider/1.0
Disallow: /secret
Crawl-delay: soon

Sitemap: http://example.com/sitemap.xml
"""


def test_parse_collects_rules_in_order():
    rules = parse_robots_txt(SAMPLE)
    assert rules.user_agents["*"] == [(False, "/private"), (True, "/private/public")]
    assert rules.user_agents["EchoSpider/1.0"] == [(False, "/secret")]


def test_parse_crawl_delay_ignores_non_integers():
    rules = parse_robots_txt(SAMPLE)
    assert rules.crawl_delay == {"*": 5}


def test_parse_sitemaps():
    rules = parse_robots_txt(SAMPLE)
    assert rules.sitemaps == ["http://example.com/sitemap.xml"]


def test_parse_ignores_rules_without_agent_and_lines_without_colon():
    rules = parse_robots_txt("Disallow: /x\nnonsense line\nAllow: /y\r\n")
    assert rules.user_agents == {}


def test_parse_directive_is_case_insensitive():
    rules = parse_robots_txt("USER-AGENT: bot\nDISALLOW: /a\r\n")
    assert rules.user_agents == {"bot": [(False, "/a")]}


@pytest.mark.parametrize(
    "path, pattern, expected",
    [
        ("/x", "", False),
        ("/anything", "/", True),
        ("/private/a", "/private", True),
        ("/pub", "/private", False),
    ],
)
def test_matches_pattern(path, pattern, expected):
    assert matches_pattern(path, pattern) is expected


def test_check_rules_prefers_specific_agent():
    rules = parse_robots_txt(SAMPLE)
    assert check_rules(rules, "/private/page", "EchoSpider/1.0") is True
    assert check_rules(rules, "/secret/page", "EchoSpider/1.0") is False
    assert check_rules(rules, "/private/page", "OtherBot") is False


def test_check_rules_first_match_wins():
    rules = parse_robots_txt(SAMPLE)
    assert check_rules(rules, "/private/public/x", "OtherBot") is False
    allow_first = parse_robots_txt("User-agent: *\nAllow: /a/b\nDisallow: /a\n")
    assert check_rules(allow_first, "/a/b/c", "bot") is True
    assert check_rules(allow_first, "/a/c", "bot") is False


def test_check_rules_without_rules_allows():
    assert check_rules(RobotsRules(), "/anything", "bot") is True


def test_empty_disallow_allows_everything():
    rules = parse_robots_txt("User-agent: *\nDisallow:\n")
    assert check_rules(rules, "/page", "bot") is True


def test_checker_uses_fetched_rules_and_caches():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "http://example.com/robots.txt", body=SAMPLE, status=200)
        checker = RobotsChecker()
        assert checker.can_crawl("http://example.com/private/x", "OtherBot") is False
        assert checker.can_crawl("http://example.com/open", "OtherBot") is True
        assert len(rsps.calls) == 1
        assert checker.get_crawl_delay("http://example.com/any", "OtherBot") == 5
        assert checker.get_sitemaps("http://example.com/") == ["http://example.com/sitemap.xml"]


def test_checker_refetches_after_ttl():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "http://example.com/robots.txt", body=SAMPLE, status=200)
        checker = RobotsChecker(cache_ttl=0)
        assert checker.can_crawl("http://example.com/a", "bot") is True
        assert checker.can_crawl("http://example.com/private/b", "bot") is False
        assert len(rsps.calls) == 2


def test_checker_allows_on_missing_robots():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "http://example.com/robots.txt", body="Disallow: /", status=404)
        checker = RobotsChecker()
        assert checker.can_crawl("http://example.com/private", "bot") is True


def test_checker_allows_on_connection_error():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            "http://example.com/robots.txt",
            body=requests.ConnectionError("refused"),
        )
        checker = RobotsChecker()
        assert checker.can_crawl("http://example.com/private", "bot") is True
        assert checker.get_sitemaps("http://example.com/") == []


def test_uncached_site_has_no_delay_or_sitemaps():
    checker = RobotsChecker()
    assert checker.get_crawl_delay("http://example.org/", "bot") == 0
    assert checker.get_sitemaps("http://example.org/") == []


def test_invalid_url_is_refused():
    assert RobotsChecker().can_crawl("http://[::1", "bot") is False