"""
Common test fixtures: configuration builder, in-memory fetcher and store.
"""

import copy
import time

import pytest

from immigration_crawler.crawler.fetcher import FetchError, FetchResult
from immigration_crawler.storage.database import DatabaseError, DatabaseManager, StorageBackend
from immigration_crawler.utils.config import DatabaseConfig, build_config


BASE_CONFIG = {
    'crawler': {
        'user_agent': 'test-agent',
        'allowed_domains': ['example.gc.ca'],
        'seed_urls': ['https://example.gc.ca/en/visa'],
        'max_depth': 2,
        'max_pages_per_run': 100,
        'per_domain_delay': 0,
        'request_timeout': 5,
        'save_every': 25,
    },
    'filter': {
        'score_threshold': 3,
        'immigration_terms': ['visa', 'immigration'],
        'drop_extensions': ['.jpg', '.css'],
        'drop_path_contains': ['/login'],
        'drop_query_params_prefix': ['utm_'],
        'main_content_selectors': ['main'],
        'score_rules': {
            'domain_bonus': {'example.gc.ca': 2},
            'contains_bonus': {},
            'contains_penalty': {},
        },
    },
}


def make_config(crawler=None, filter=None, score_rules=None, **sections):
    """Build a validated Config from BASE_CONFIG with section-level overrides."""
    data = copy.deepcopy(BASE_CONFIG)
    data['crawler'].update(crawler or {})
    data['filter'].update(filter or {})
    data['filter']['score_rules'].update(score_rules or {})
    data.update(sections)
    return build_config(data)


def html_page(body: str, title: str = "Page") -> str:
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


class FakeFetcher:
    """Serves canned FetchResults; unknown URLs fail with HTTP 404."""

    def __init__(self):
        self.pages = {}
        self.calls = []

    def add(self, url, body="", content_type="text/html; charset=utf-8", status=200, final_url=None):
        self.pages[url] = FetchResult(
            url=url,
            status_code=status,
            final_url=final_url or url,
            body=body,
            content_type=content_type,
        )

    def fail(self, url, error=None):
        self.pages[url] = error or FetchError(url, "Client error: connection reset")

    async def fetch(self, url, accept="*/*"):
        self.calls.append((url, accept, time.monotonic()))
        item = self.pages.get(url)
        if item is None:
            raise FetchError(url, "HTTP 404", 404)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def fetched_urls(self):
        return [url for url, _, _ in self.calls]


class MemoryBackend(StorageBackend):
    """Dict-backed store that records the order of writes."""

    def __init__(self, fail_on=None):
        self.records = {}
        self.operations = []
        self.fail_on = fail_on

    async def initialize(self):
        pass

    async def upsert_seen(self, records):
        if self.fail_on == 'seen':
            raise DatabaseError("seen write refused")
        for record in records:
            self.operations.append(('seen', record.url))
            self.records.setdefault(record.url, {'status': 'pending'}).update(vars(record))

    async def update_checked(self, records):
        if self.fail_on == 'checked':
            raise DatabaseError("checked write refused")
        for record in records:
            self.operations.append(('checked', record.url))
            if record.url in self.records:
                self.records[record.url].update(vars(record))

    async def get_record(self, url):
        return self.records.get(url)

    async def count_urls(self):
        return len(self.records)

    async def close(self):
        pass


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def database(backend):
    return DatabaseManager(DatabaseConfig(type='file'), backend=backend)
