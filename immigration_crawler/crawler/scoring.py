"""
Relevance scoring for crawled URLs and page text.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..utils.config import FilterConfig
from .normalize import get_domain


URL_TERM_BONUS = 2
TEXT_TERM_BONUS = 2


@dataclass(frozen=True)
class ScoreResult:
    """Numeric relevance with a human-readable explanation."""
    score: int
    reason: str
    trusted: bool = False


@dataclass(frozen=True)
class TrustedPattern:
    """
    An authoritative legal source.

    A URL matches when its lower-cased text contains any of `contains` and,
    if `domain` is set, its hostname is that domain or a subdomain of it.
    """
    classification: str
    contains: Tuple[str, ...]
    domain: Optional[str] = None
    bonus: int = 5
    label: str = ""

    def matches(self, lower_url: str, hostname: str) -> bool:
        if self.domain and hostname != self.domain and not hostname.endswith("." + self.domain):
            return False
        return any(needle in lower_url for needle in self.contains)


TRUSTED_PATTERNS: Tuple[TrustedPattern, ...] = (
    # IRPA and IRPR on Justice Laws, including the PDF mirrors
    TrustedPattern(
        classification="statute",
        contains=(
            "laws-lois.justice.gc.ca/eng/acts/i-2.5",
            "laws-lois.justice.gc.ca/eng/regulations/sor-2002-227",
            "laws.justice.gc.ca/pdf/i-2.5",
            "laws-lois.justice.gc.ca/pdf/sor-2002-227",
        ),
        label="trusted IRPA/IRPR",
    ),
    TrustedPattern(
        classification="gazette",
        contains=("sor-", "si-", "regulations"),
        domain="gazette.gc.ca",
        label="trusted Gazette reg",
    ),
)


class RelevanceScorer:
    """
    Scores URLs and page text against the configured immigration vocabulary.

    keep = trusted or url score + text score >= score_threshold
    """

    def __init__(self, config: FilterConfig, trusted_patterns: Tuple[TrustedPattern, ...] = TRUSTED_PATTERNS):
        self.config = config
        self.trusted_patterns = trusted_patterns
        self.terms = [term.lower() for term in config.immigration_terms]
        self.logger = logging.getLogger(__name__)

    def _trusted_matches(self, url: str) -> List[TrustedPattern]:
        lower = url.lower()
        hostname = get_domain(url)
        return [pattern for pattern in self.trusted_patterns if pattern.matches(lower, hostname)]

    def is_trusted(self, url: str) -> bool:
        return bool(self._trusted_matches(url))

    def score_url(self, url: str) -> ScoreResult:
        lower = url.lower()
        rules = self.config.score_rules
        reasons = []

        score = rules.domain_bonus.get(get_domain(url), 0)

        trusted = self._trusted_matches(url)
        for pattern in trusted:
            score += pattern.bonus
            reasons.append(f"+{pattern.bonus} {pattern.label or pattern.classification}")

        if any(term in lower for term in self.terms):
            score += URL_TERM_BONUS
            reasons.append(f"+{URL_TERM_BONUS} url term match")

        # Generic tables stack with the term bonus above, so a term listed in
        # both immigration_terms and contains_bonus is counted twice.
        for needle, points in rules.contains_bonus.items():
            if needle.lower() in lower:
                score += points
        for needle, points in rules.contains_penalty.items():
            if needle.lower() in lower:
                score -= points

        return ScoreResult(score=score, reason=", ".join(reasons) or "url score", trusted=bool(trusted))

    def score_text(self, text: str) -> ScoreResult:
        if not self.terms:
            return ScoreResult(score=0, reason="no terms configured")

        lower = (text or "").lower()
        if any(term in lower for term in self.terms):
            return ScoreResult(score=TEXT_TERM_BONUS, reason=f"+{TEXT_TERM_BONUS} page text term match")
        return ScoreResult(score=0, reason="no page text match")

    def decide(self, url: str, text: Optional[str] = None) -> ScoreResult:
        """
        Combine URL and text scores.

        Args:
            url: Canonical URL of the page
            text: Extracted page text, or None when the content was not HTML
        """
        url_score = self.score_url(url)
        if text is None:
            text_score = ScoreResult(score=0, reason="no text scoring")
        else:
            text_score = self.score_text(text)

        return ScoreResult(
            score=url_score.score + text_score.score,
            reason=f"{url_score.reason}; {text_score.reason}",
            trusted=url_score.trusted,
        )

    def keep(self, result: ScoreResult) -> bool:
        return result.trusted or result.score >= self.config.score_threshold
