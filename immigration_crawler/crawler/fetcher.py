"""
HTTP transport for pages, feeds and sitemaps.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from urllib.parse import urljoin
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError


REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class FetchError(Exception):
    """A URL could not be fetched: transport error, timeout or an error status."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message}: {url}")
        self.url = url
        self.status_code = status_code


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    final_url: str
    body: str = ""
    content_type: str = ""
    fetch_time: float = 0.0

    @property
    def is_html(self) -> bool:
        content_type = self.content_type.lower()
        return 'text/html' in content_type or 'application/xhtml+xml' in content_type


class WebFetcher:
    """
    Fetches URLs with manual redirect following and a body size cap.
    """

    def __init__(self, user_agent: str, request_timeout: float = 30,
                 max_redirects: int = 5, max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_redirects = max_redirects
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'redirects_followed': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit_per_host=2,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str, accept: str = "*/*") -> FetchResult:
        """
        Fetch a single URL, following redirects.

        Args:
            url: The URL to fetch
            accept: Value for the Accept header

        Returns:
            FetchResult for the post-redirect response

        Raises:
            FetchError: on transport failure, timeout, too many redirects,
                an oversized body or a status of 400 or above
        """
        if self.session is None:
            await self.start()

        start_time = time.time()
        current = url
        self.stats['total_requests'] += 1

        try:
            for _ in range(self.max_redirects + 1):
                async with self.session.get(
                    current, headers={'Accept': accept}, allow_redirects=False
                ) as response:
                    location = response.headers.get('location')
                    if response.status in REDIRECT_STATUSES and location:
                        try:
                            current = urljoin(current, location)
                        except ValueError as e:
                            raise FetchError(url, f"Invalid redirect location {location!r}",
                                             response.status) from e
                        self.stats['redirects_followed'] += 1
                        continue

                    if response.status >= 400:
                        raise FetchError(url, f"HTTP {response.status}", response.status)

                    body = await self._read_content_safely(response)
                    result = FetchResult(
                        url=url,
                        status_code=response.status,
                        final_url=current,
                        body=body,
                        content_type=response.headers.get('content-type', ''),
                        fetch_time=time.time() - start_time
                    )

                self.stats['successful_requests'] += 1
                self.stats['total_bytes_downloaded'] += len(body)
                self.logger.debug(f"Fetched {url}: {result.status_code} ({len(body)} chars)")
                return result

            raise FetchError(url, f"Too many redirects (>{self.max_redirects})")

        except FetchError:
            self.stats['failed_requests'] += 1
            raise

        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            raise FetchError(url, "Request timeout") from e

        except ClientError as e:
            self.stats['failed_requests'] += 1
            raise FetchError(url, f"Client error: {e}") from e

        except ValueError as e:
            # yarl/urllib reject malformed URLs with ValueError
            self.stats['failed_requests'] += 1
            raise FetchError(url, f"Invalid URL: {e}") from e

    async def _read_content_safely(self, response) -> str:
        """Read and decode the response body, refusing bodies over the size cap."""
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            raise FetchError(str(response.url), f"Content too large ({content_length} bytes)")

        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_content_size:
                raise FetchError(str(response.url), "Content exceeded size limit during reading")

        encoding = response.charset or 'utf-8'
        for candidate in (encoding, 'utf-8', 'latin-1'):
            try:
                return content_bytes.decode(candidate)
            except (UnicodeDecodeError, LookupError):
                continue

        return content_bytes.decode('utf-8', errors='ignore')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
