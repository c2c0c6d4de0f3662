"""
Crawler scheduler that runs one discovery-and-drain pass over the frontier.
"""

import logging
import time
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Optional

from .discovery import DiscoveryAggregator, DiscoveryEvent
from .fetcher import FetchError
from .filters import AdmissionFilter
from .parser import ContentParser
from .politeness import PolitenessScheduler
from .scoring import RelevanceScorer
from .url_frontier import FrontierEntry, URLFrontier
from ..storage.database import CheckedRecord, DatabaseManager, SeenRecord
from ..utils.config import Config
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class RunState(Enum):
    INIT = "init"
    DISCOVER = "discover"
    DRAIN = "drain"
    DONE = "done"


@dataclass
class RunStats:
    """Counters for one crawl run."""
    discovered: int = 0
    enqueued: int = 0
    fetched: int = 0
    kept: int = 0
    rejected: int = 0
    failed: int = 0
    processed: int = 0
    feed_items: int = 0
    sitemap_urls: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.fetched / elapsed_minutes if elapsed_minutes > 0 else 0

    def snapshot(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != 'start_time'}


class CrawlerScheduler:
    """
    Coordinates discovery, admission, fetching and scoring for one run.

    The fetcher and database are injected, so the whole pipeline can run
    against in-memory doubles.
    """

    def __init__(self, config: Config, fetcher, database: DatabaseManager,
                 parser: Optional[ContentParser] = None, monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.fetcher = fetcher
        self.database = database
        self.parser = parser or ContentParser(config.filter.main_content_selectors)
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)
        self.url_logger = get_crawler_logger(__name__, component='scheduler')

        self.admission_filter = AdmissionFilter(config.filter, config.crawler.allowed_domains)
        self.url_frontier = URLFrontier(self.admission_filter, config.filter.drop_query_params_prefix)
        self.scorer = RelevanceScorer(config.filter)
        self.politeness = PolitenessScheduler(config.crawler.per_domain_delay)

        self.stats = RunStats()
        self.state = RunState.INIT

    def _count(self, stat_name: str, amount: int = 1):
        setattr(self.stats, stat_name, getattr(self.stats, stat_name) + amount)
        if self.monitor:
            self.monitor.record(stat_name, amount)

    def offer(self, event: DiscoveryEvent) -> Optional[FrontierEntry]:
        """Run a discovery event through canonicalization and admission."""
        self._count('discovered')

        entry = self.url_frontier.submit(event)
        if entry is None:
            return None

        self._count('enqueued')
        self.database.buffer_seen(SeenRecord(
            url=entry.url,
            domain=entry.domain,
            depth=entry.depth,
            source_type=entry.source.value,
            discovered_from=entry.discovered_from,
            raw_url=entry.raw_url
        ))
        return entry

    async def run(self) -> RunStats:
        """
        Discover, then drain the frontier until it is empty or the page budget is spent.

        Raises:
            DatabaseError: if buffered decisions cannot be persisted
        """
        crawler = self.config.crawler
        self.stats = RunStats()

        self.state = RunState.DISCOVER
        aggregator = DiscoveryAggregator(
            self.fetcher, crawler.seed_urls, crawler.rss_feeds, crawler.sitemaps, stats=self.stats
        )
        async for event in aggregator.discover():
            self.offer(event)

        if self.monitor:
            self.monitor.record('feed_items', self.stats.feed_items)
            self.monitor.record('sitemap_urls', self.stats.sitemap_urls)

        await self.database.flush()
        self.logger.info(
            f"Discovery finished: {self.stats.enqueued} URLs enqueued from "
            f"{self.stats.discovered} candidates"
        )

        self.state = RunState.DRAIN
        while not self.url_frontier.is_empty() and self.stats.processed < crawler.max_pages_per_run:
            entry = self.url_frontier.pop()
            await self._process_entry(entry, aggregator)

            if self.monitor:
                self.monitor.update_queue_size(len(self.url_frontier))

            if self.stats.processed % crawler.save_every == 0:
                await self.database.flush()
                await self._log_current_stats()

        if not self.url_frontier.is_empty():
            self.logger.info(
                f"Reached max pages limit: {crawler.max_pages_per_run} "
                f"({len(self.url_frontier)} URLs left for a later run)"
            )

        self.state = RunState.DONE
        await self.database.flush()
        await self._log_final_stats()
        return self.stats

    async def _process_entry(self, entry: FrontierEntry, aggregator: DiscoveryAggregator):
        """Fetch, score and expand a single frontier entry."""
        await self.politeness.wait_if_needed(entry.domain)
        self._count('processed')
        self._count('fetched')

        try:
            result = await self.fetcher.fetch(entry.url)
        except FetchError as e:
            self._count('failed')
            self.url_logger.log_url_event(logging.WARNING, entry.url, f"Failed to fetch {entry.url}: {e}")
            self.database.buffer_checked(CheckedRecord(
                url=entry.url,
                status='failed',
                relevant=False,
                score=0,
                reason=f"fetch failed: {e}",
                http_status=e.status_code
            ))
            return

        page = None
        if result.is_html:
            page = self.parser.extract(result.final_url, result.body, self.config.filter.main_content_selectors)

        decision = self.scorer.decide(entry.url, page.text if page is not None else None)
        keep = self.scorer.keep(decision)
        self._count('kept' if keep else 'rejected')

        self.database.buffer_checked(CheckedRecord(
            url=entry.url,
            status='visited',
            relevant=keep,
            score=decision.score,
            reason=decision.reason,
            http_status=result.status_code,
            content_type=result.content_type or None
        ))
        self.url_logger.log_url_event(
            logging.DEBUG, entry.url,
            f"{'Kept' if keep else 'Rejected'} {entry.url} (score {decision.score}: {decision.reason})"
        )

        # Children of rejected pages, and of pages at the depth limit, are never traversed
        if keep and page is not None and page.links and entry.depth < self.config.crawler.max_depth:
            added = 0
            for child in aggregator.children_of(entry, page.links):
                if self.offer(child) is not None:
                    added += 1
            self.logger.debug(f"Queued {added} of {len(page.links)} links from {entry.url}")

    async def _log_current_stats(self):
        """Log current crawl statistics."""
        total_stored = await self.database.count_urls()
        self.logger.info(
            f"Crawl Progress: "
            f"Processed={self.stats.processed}, "
            f"Discovered={self.stats.discovered}, "
            f"Enqueued={self.stats.enqueued}, "
            f"Kept={self.stats.kept}, "
            f"Rejected={self.stats.rejected}, "
            f"Failed={self.stats.failed}, "
            f"Queued={len(self.url_frontier)}, "
            f"Stored={total_stored}, "
            f"Rate={self.stats.pages_per_minute:.1f} pages/min"
        )

    async def _log_final_stats(self):
        """Log final crawl statistics."""
        total_stored = await self.database.count_urls()

        self.logger.info("=== CRAWL COMPLETED ===")
        for stat_name, value in self.stats.snapshot().items():
            self.url_logger.log_crawler_stat(stat_name, value)
        self.logger.info(f"URLs remaining in queue: {len(self.url_frontier)}")
        self.logger.info(f"Total URLs stored: {total_stored}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Database stats: {self.database.get_stats()}")

    def get_stats(self) -> Dict[str, int]:
        """Get current crawl statistics."""
        return self.stats.snapshot()
