from immigration_crawler.crawler.discovery import DiscoveryEvent, DiscoverySource
from immigration_crawler.crawler.filters import AdmissionFilter
from immigration_crawler.crawler.url_frontier import URLFrontier

from conftest import make_config


def make_frontier(**kwargs):
    config = make_config(**kwargs)
    admission = AdmissionFilter(config.filter, config.crawler.allowed_domains)
    return URLFrontier(admission, config.filter.drop_query_params_prefix)


def seed(url, depth=0):
    return DiscoveryEvent(raw_url=url, depth=depth, source=DiscoverySource.SEED)


def test_submit_canonicalizes_and_keeps_metadata():
    frontier = make_frontier()
    event = DiscoveryEvent("http://example.gc.ca/en/page?utm_source=x#top", 1, DiscoverySource.CRAWL,
                           "https://example.gc.ca/en/")
    entry = frontier.submit(event)

    assert entry.url == "https://example.gc.ca/en/page/"
    assert entry.depth == 1
    assert entry.source is DiscoverySource.CRAWL
    assert entry.discovered_from == "https://example.gc.ca/en/"
    assert entry.raw_url == event.raw_url
    assert entry.domain == "example.gc.ca"


def test_same_canonical_url_enqueued_once():
    frontier = make_frontier()
    assert frontier.submit(seed("https://example.gc.ca/en/page")) is not None
    assert frontier.submit(seed("http://example.gc.ca/en/page/#again")) is None
    assert frontier.submit(seed("https://example.gc.ca/en/page?utm_campaign=z")) is None
    assert len(frontier) == 1


def test_malformed_and_rejected_urls_are_dropped():
    frontier = make_frontier()
    assert frontier.submit(seed("::not a url::")) is None
    assert frontier.submit(seed("https://elsewhere.example/")) is None
    assert frontier.is_empty()


def test_pop_is_fifo():
    frontier = make_frontier()
    urls = ["https://example.gc.ca/c/", "https://example.gc.ca/a/", "https://example.gc.ca/b/"]
    for url in urls:
        frontier.submit(seed(url))

    assert [frontier.pop().url for _ in urls] == urls
    assert frontier.pop() is None


def test_stats():
    frontier = make_frontier()
    frontier.submit(seed("https://example.gc.ca/a/"))
    frontier.submit(seed("https://example.gc.ca/b/"))
    frontier.pop()
    assert frontier.get_stats() == {'total_queued': 1, 'total_admitted': 2, 'domains_with_urls': 1}
