import pytest

from immigration_crawler.crawler.normalize import canonicalize, get_domain


@pytest.mark.parametrize("raw,expected", [
    ("http://x.com/a", "https://x.com/a/"),
    ("https://X.COM/a/b/", "https://x.com/a/b/"),
    ("https://x.com", "https://x.com/"),
    ("https://x.com/docs/file.pdf", "https://x.com/docs/file.pdf"),
    ("https://x.com/v1.2/page", "https://x.com/v1.2/page/"),
    ("https://x.com:443/a", "https://x.com/a/"),
    ("https://x.com:8443/a", "https://x.com:8443/a/"),
    ("  https://x.com/a  ", "https://x.com/a/"),
])
def test_canonical_forms(raw, expected):
    assert canonicalize(raw, ["utm_"]) == expected


def test_collapses_scheme_fragment_and_tracking_variants():
    a = canonicalize("http://x.com/a?x=1&utm_source=y#f", ["utm_"])
    b = canonicalize("https://x.com/a/?x=1", ["utm_"])
    assert a == b == "https://x.com/a/?x=1"


def test_remaining_query_parameters_keep_their_order():
    url = canonicalize("https://x.com/a?b=2&utm_medium=m&a=1&fbclid=z", ["utm_", "fbclid"])
    assert url == "https://x.com/a/?b=2&a=1"


def test_query_prefix_match_is_case_sensitive():
    assert canonicalize("https://x.com/a?UTM_source=y", ["utm_"]) == "https://x.com/a/?UTM_source=y"


def test_query_removed_entirely_when_all_parameters_dropped():
    assert canonicalize("https://x.com/a?utm_source=y&utm_campaign=z", ["utm_"]) == "https://x.com/a/"


@pytest.mark.parametrize("raw", [
    "http://www.canada.ca/en/immigration?utm_source=feed#top",
    "https://laws-lois.justice.gc.ca/eng/acts/I-2.5/page-1.html",
    "https://x.com/a?q=hello%20world&utm_x=1",
    "https://x.com",
])
def test_canonicalize_is_idempotent(raw):
    once = canonicalize(raw, ["utm_"])
    assert canonicalize(once, ["utm_"]) == once


@pytest.mark.parametrize("raw", [
    "",
    "not a url",
    "/relative/path",
    "mailto:someone@example.org",
    "javascript:void(0)",
    "https://x.com:notaport/a",
])
def test_invalid_urls_are_dropped(raw):
    assert canonicalize(raw, ["utm_"]) is None


def test_get_domain():
    assert get_domain("https://WWW.Canada.ca/en/") == "www.canada.ca"
    assert get_domain("not a url") == ""
