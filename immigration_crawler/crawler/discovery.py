"""
Discovery sources: seed list, RSS/Atom feeds, XML sitemaps and crawled pages.

Feed and sitemap readers never raise. A source that cannot be fetched or
parsed is logged with a short body preview and contributes no URLs, so one
broken feed does not stop discovery from the others.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from .fetcher import FetchError, FetchResult


FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9,*/*;q=0.8"
SITEMAP_ACCEPT = "application/xml, text/xml;q=0.9,*/*;q=0.8"

FEED_PROLOGUES = ("<?xml", "<rss", "<feed", "<rdf:RDF")
SITEMAP_PROLOGUES = ("<?xml", "<urlset", "<sitemapindex")

PREVIEW_LENGTH = 220

logger = logging.getLogger(__name__)


class DiscoverySource(Enum):
    """Where a candidate URL came from."""
    SEED = "seed"
    FEED = "feed"
    SITEMAP = "sitemap"
    CRAWL = "crawl"


@dataclass(frozen=True)
class DiscoveryEvent:
    """A candidate URL offered to admission."""
    raw_url: str
    depth: int
    source: DiscoverySource
    discovered_from: Optional[str] = None


class DiscoverySourceError(Exception):
    """A feed or sitemap response was unusable."""
    pass


def body_preview(body: str) -> str:
    """First characters of a body with whitespace collapsed, for diagnostics."""
    return re.sub(r'\s+', ' ', (body or "").strip()[:PREVIEW_LENGTH])


def _check_xml_response(result: FetchResult, prologues: Sequence[str]):
    if result.status_code < 200 or result.status_code >= 400:
        raise DiscoverySourceError(f"HTTP {result.status_code}")

    content_type = result.content_type.lower()
    if 'xml' not in content_type and not result.body.lstrip('\ufeff').strip().startswith(tuple(prologues)):
        raise DiscoverySourceError(f"not xml (content-type {content_type or 'missing'!r})")


def _text_of(tag) -> Optional[str]:
    if tag is None:
        return None
    text = tag.get_text(strip=True)
    return text or None


def parse_feed(body: str) -> List[str]:
    """Extract item links from an RSS 2.0 or Atom document."""
    soup = BeautifulSoup(body, 'xml')
    links = []

    rss = soup.find('rss')
    if rss is not None:
        channel = rss.find('channel')
        items = channel.find_all('item', recursive=False) if channel is not None else []
        for item in items:
            # atom:link elements inside an item carry no text and are skipped
            for link in item.find_all('link', recursive=False):
                text = _text_of(link)
                if text:
                    links.append(text)
                    break

    feed = soup.find('feed')
    if feed is not None:
        for entry in feed.find_all('entry', recursive=False):
            for link in entry.find_all('link', recursive=False):
                href = link.get('href')
                if href:
                    links.append(href.strip())

    return links


def parse_sitemap(body: str) -> List[str]:
    """Extract <loc> URLs from a urlset or a sitemap index."""
    soup = BeautifulSoup(body, 'xml')
    locations = []

    urlset = soup.find('urlset')
    if urlset is not None:
        for url in urlset.find_all('url', recursive=False):
            loc = _text_of(url.find('loc'))
            if loc:
                locations.append(loc)

    sitemap_index = soup.find('sitemapindex')
    if sitemap_index is not None:
        for sitemap in sitemap_index.find_all('sitemap', recursive=False):
            loc = _text_of(sitemap.find('loc'))
            if loc:
                locations.append(loc)

    return locations


async def _read_xml_source(fetcher, url: str, kind: str, accept: str,
                           prologues: Sequence[str], parse) -> List[str]:
    result = None
    try:
        result = await fetcher.fetch(url, accept=accept)
        _check_xml_response(result, prologues)
        return parse(result.body.lstrip('\ufeff'))
    except FetchError as e:
        logger.warning(f"[{kind}] fetch failed for {url}: {e}")
    except DiscoverySourceError as e:
        logger.warning(
            f"[{kind}] {e}: url={url} final_url={result.final_url} "
            f"preview={body_preview(result.body)!r}"
        )
    except Exception as e:
        preview = body_preview(result.body) if result is not None else ""
        logger.warning(f"[{kind}] parse failed for {url}: {e} preview={preview!r}")
    return []


async def read_feed(fetcher, feed_url: str) -> List[str]:
    """Fetch an RSS/Atom feed and return its item links; [] on any failure."""
    return await _read_xml_source(fetcher, feed_url, 'rss', FEED_ACCEPT, FEED_PROLOGUES, parse_feed)


async def read_sitemap(fetcher, sitemap_url: str) -> List[str]:
    """
    Fetch a sitemap and return its <loc> URLs; [] on any failure.

    Child sitemaps of an index come back as ordinary URLs and are not followed here.
    """
    return await _read_xml_source(fetcher, sitemap_url, 'sitemap', SITEMAP_ACCEPT,
                                  SITEMAP_PROLOGUES, parse_sitemap)


class DiscoveryAggregator:
    """Turns the configured seeds, feeds and sitemaps into one stream of events."""

    def __init__(self, fetcher, seed_urls: Iterable[str] = (), rss_feeds: Iterable[str] = (),
                 sitemaps: Iterable[str] = (), stats=None):
        self.fetcher = fetcher
        self.seed_urls = list(seed_urls)
        self.rss_feeds = list(rss_feeds)
        self.sitemaps = list(sitemaps)
        self.stats = stats

    async def discover(self) -> AsyncIterator[DiscoveryEvent]:
        for url in self.seed_urls:
            yield DiscoveryEvent(raw_url=url, depth=0, source=DiscoverySource.SEED)

        for feed_url in self.rss_feeds:
            links = await read_feed(self.fetcher, feed_url)
            logger.info(f"[rss] {len(links)} items from {feed_url}")
            if self.stats is not None:
                self.stats.feed_items += len(links)
            for link in links:
                yield DiscoveryEvent(raw_url=link, depth=0, source=DiscoverySource.FEED,
                                     discovered_from=feed_url)

        for sitemap_url in self.sitemaps:
            locations = await read_sitemap(self.fetcher, sitemap_url)
            logger.info(f"[sitemap] {len(locations)} urls from {sitemap_url}")
            if self.stats is not None:
                self.stats.sitemap_urls += len(locations)
            for location in locations:
                yield DiscoveryEvent(raw_url=location, depth=0, source=DiscoverySource.SITEMAP,
                                     discovered_from=sitemap_url)

    @staticmethod
    def children_of(parent, links: Iterable[str]) -> List[DiscoveryEvent]:
        """Crawl events for the links found on a frontier entry's page."""
        return [
            DiscoveryEvent(raw_url=link, depth=parent.depth + 1, source=DiscoverySource.CRAWL,
                           discovered_from=parent.url)
            for link in links
        ]
