"""
Per-domain request spacing.
"""

import asyncio
import logging
import time
from collections import defaultdict
from typing import Dict


class PolitenessScheduler:
    """
    Enforces a minimum delay between consecutive requests to the same domain.

    The last-request timestamp is recorded just before the caller is released,
    and callers for one domain are serialized by a per-domain lock.
    """

    def __init__(self, delay: float = 1.0):
        self.delay = delay
        self.domain_last_access: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.logger = logging.getLogger(__name__)

    async def wait_if_needed(self, domain: str):
        async with self._locks[domain]:
            last_access = self.domain_last_access.get(domain)
            if last_access is not None:
                wait = self.delay - (time.monotonic() - last_access)
                if wait > 0:
                    self.logger.debug(f"Waiting {wait:.2f}s before next request to {domain}")
                    await asyncio.sleep(wait)
            self.domain_last_access[domain] = time.monotonic()
