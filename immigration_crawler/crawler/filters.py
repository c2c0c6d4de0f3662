"""
Admission filter deciding whether a canonical URL may enter the frontier.

Predicates run cheapest and most decisive first and stop at the first
rejection:

1. hostname allowlist
2. per-domain language prefix (when english_only is on)
3. per-domain required path prefixes
4. blocked extensions and blocked path substrings
5. already admitted earlier in this run
"""

import logging
from typing import Iterable, Optional, Set
from urllib.parse import urlsplit

from ..utils.config import FilterConfig
from .normalize import get_domain


class AdmissionFilter:
    """
    Stateless URL predicates plus the run-scoped set of admitted URLs.
    """

    def __init__(self, config: FilterConfig, allowed_domains: Iterable[str]):
        self.config = config
        self.allowed_domains = {domain.lower() for domain in allowed_domains}
        self.drop_extensions = [ext.lower() for ext in config.drop_extensions]
        self.drop_path_contains = [pattern.lower() for pattern in config.drop_path_contains]
        self.admitted: Set[str] = set()
        self.logger = logging.getLogger(__name__)

    def is_allowed_domain(self, url: str) -> bool:
        return get_domain(url) in self.allowed_domains

    def is_language_allowed(self, url: str) -> bool:
        """Domains with a language prefix rule only admit paths under that prefix."""
        if not self.config.english_only:
            return True

        prefix = self.config.language_prefixes.get(get_domain(url))
        if prefix is None:
            return True
        return urlsplit(url).path.lower().startswith(prefix.lower())

    def is_path_in_scope(self, url: str) -> bool:
        """Domains with required path prefixes only admit paths under one of them."""
        prefixes = self.config.path_prefixes.get(get_domain(url)) or []
        if not prefixes:
            return True

        path = urlsplit(url).path
        return any(path.startswith(prefix) for prefix in prefixes)

    def blocked_reason(self, url: str) -> Optional[str]:
        """Name the blocklist rule the URL matches, or None."""
        lower = url.lower()

        for ext in self.drop_extensions:
            if lower.endswith(ext):
                return f"dropped extension: {ext}"
        for pattern in self.drop_path_contains:
            if pattern in lower:
                return f"dropped path: {pattern}"
        return None

    def rejection_reason(self, url: str, check_seen: bool = True) -> Optional[str]:
        """
        Evaluate the predicates in order.

        Args:
            url: A canonical URL
            check_seen: Whether to apply the run-scoped dedup predicate

        Returns:
            None if every predicate passes, otherwise why the URL was rejected
        """
        if not self.is_allowed_domain(url):
            return "domain not allowed"
        if not self.is_language_allowed(url):
            return "language prefix mismatch"
        if not self.is_path_in_scope(url):
            return "path out of scope"

        blocked = self.blocked_reason(url)
        if blocked:
            return blocked

        if check_seen and url in self.admitted:
            return "already admitted"
        return None

    def admit(self, url: str) -> bool:
        """Admit a canonical URL once per run."""
        reason = self.rejection_reason(url)
        if reason:
            self.logger.debug(f"Rejected {url}: {reason}")
            return False

        self.admitted.add(url)
        return True
