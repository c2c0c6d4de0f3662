"""
HTML parser for extracting main-content text and links.
"""

import re
import logging
from typing import List, Optional, Sequence
from urllib.parse import urljoin
from dataclasses import dataclass, field
from bs4 import BeautifulSoup


NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header", "aside"]
SKIPPED_LINK_PREFIXES = ("mailto:", "tel:", "#")


@dataclass
class PageContent:
    """Visible text and outbound links of a page's main content area."""
    url: str
    text: str = ""
    links: List[str] = field(default_factory=list)


class ContentParser:
    """
    Extracts the main content root of an HTML page, its text and its links.
    """

    def __init__(self, default_selectors: Optional[Sequence[str]] = None):
        self.default_selectors = list(default_selectors or ["main", "[role='main']", "#main-content", "article"])
        self.logger = logging.getLogger(__name__)
        self.whitespace_pattern = re.compile(r'\s+')

    def extract(self, url: str, html_content: str,
                selectors: Optional[Sequence[str]] = None) -> PageContent:
        """
        Extract text and links from the main content of a page.

        Args:
            url: Base URL used to resolve relative links (the post-redirect URL)
            html_content: Raw HTML
            selectors: CSS selectors tried in order for the content root

        Returns:
            PageContent with collapsed text and deduplicated absolute links
        """
        soup = BeautifulSoup(html_content or "", 'lxml')

        for element in soup(NON_CONTENT_TAGS):
            element.decompose()

        root = None
        for selector in selectors or self.default_selectors:
            root = soup.select_one(selector)
            if root is not None:
                break

        if root is None:
            root = soup.find('body') or soup

        text = self._clean_text(root.get_text(separator=' '))
        links = self._extract_links(root, url)

        self.logger.debug(f"Extracted {len(text)} chars and {len(links)} links from {url}")
        return PageContent(url=url, text=text, links=links)

    def _extract_links(self, root, base_url: str) -> List[str]:
        """Resolve every hyperlink under root, skipping mailto/tel/fragment targets."""
        links = {}

        for anchor in root.find_all('a', href=True):
            href = anchor['href'].strip()
            if not href or href.lower().startswith(SKIPPED_LINK_PREFIXES):
                continue

            try:
                absolute_url = urljoin(base_url, href)
            except ValueError:
                self.logger.debug(f"Unresolvable link {href!r} on {base_url}")
                continue
            links.setdefault(absolute_url, None)

        return list(links)

    def _clean_text(self, text: str) -> str:
        """Collapse whitespace runs into single spaces."""
        if not text:
            return ""
        return self.whitespace_pattern.sub(' ', text).strip()
