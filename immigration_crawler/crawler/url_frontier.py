"""
URL Frontier: the run-scoped FIFO of admitted URLs.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Optional

from .discovery import DiscoveryEvent, DiscoverySource
from .filters import AdmissionFilter
from .normalize import canonicalize, get_domain


@dataclass
class FrontierEntry:
    """An admitted URL waiting to be fetched."""
    url: str
    depth: int
    source: DiscoverySource
    discovered_from: Optional[str] = None
    raw_url: Optional[str] = None

    @property
    def domain(self) -> str:
        return get_domain(self.url)


class URLFrontier:
    """
    Breadth-first work queue.

    submit() canonicalizes, admits and appends in one step with no await in
    between, so a canonical URL can never be queued twice in a run.
    """

    def __init__(self, admission_filter: AdmissionFilter, drop_query_prefixes: Iterable[str] = ()):
        self.admission_filter = admission_filter
        self.drop_query_prefixes = tuple(drop_query_prefixes)
        self.queue: Deque[FrontierEntry] = deque()
        self.logger = logging.getLogger(__name__)

    def submit(self, event: DiscoveryEvent) -> Optional[FrontierEntry]:
        """
        Offer a discovered URL to the frontier.

        Returns the new entry, or None if the URL is malformed or not admitted.
        """
        url = canonicalize(event.raw_url, self.drop_query_prefixes)
        if url is None:
            return None

        if not self.admission_filter.admit(url):
            return None

        entry = FrontierEntry(
            url=url,
            depth=event.depth,
            source=event.source,
            discovered_from=event.discovered_from,
            raw_url=event.raw_url
        )
        self.queue.append(entry)
        self.logger.debug(f"Added URL to frontier: {url} (depth {entry.depth}, {entry.source.value})")
        return entry

    def pop(self) -> Optional[FrontierEntry]:
        """Remove and return the oldest entry."""
        if not self.queue:
            return None
        return self.queue.popleft()

    def is_empty(self) -> bool:
        return not self.queue

    def __len__(self) -> int:
        return len(self.queue)

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': len(self.queue),
            'total_admitted': len(self.admission_filter.admitted),
            'domains_with_urls': len({entry.domain for entry in self.queue}),
        }
