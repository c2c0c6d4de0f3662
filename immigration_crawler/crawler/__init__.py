"""
Crawler core: canonicalization, discovery, admission, scoring and the frontier.
"""

from .normalize import canonicalize, get_domain
from .discovery import DiscoveryAggregator, DiscoveryEvent, DiscoverySource, read_feed, read_sitemap
from .fetcher import WebFetcher, FetchResult, FetchError
from .filters import AdmissionFilter
from .parser import ContentParser, PageContent
from .politeness import PolitenessScheduler
from .scoring import RelevanceScorer, ScoreResult, TrustedPattern, TRUSTED_PATTERNS
from .url_frontier import URLFrontier, FrontierEntry
from .scheduler import CrawlerScheduler, RunStats, RunState

__all__ = [
    'canonicalize', 'get_domain',
    'DiscoveryAggregator', 'DiscoveryEvent', 'DiscoverySource', 'read_feed', 'read_sitemap',
    'WebFetcher', 'FetchResult', 'FetchError',
    'AdmissionFilter',
    'ContentParser', 'PageContent',
    'PolitenessScheduler',
    'RelevanceScorer', 'ScoreResult', 'TrustedPattern', 'TRUSTED_PATTERNS',
    'URLFrontier', 'FrontierEntry',
    'CrawlerScheduler', 'RunStats', 'RunState',
]
