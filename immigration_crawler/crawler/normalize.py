"""
URL canonicalization.

Every URL entering the frontier is reduced to a canonical form so that
scheme, fragment and tracking-parameter variants of one page share a single
deduplication key.
"""

from typing import Iterable, Optional
from urllib.parse import unquote_plus, urlsplit, urlunsplit


def get_domain(url: str) -> str:
    """Extract the lower-cased hostname from a URL, or '' if it has none."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _strip_query(query: str, drop_prefixes: Iterable[str]) -> str:
    """Drop query parameters whose key starts with any prefix, keeping order and encoding."""
    prefixes = tuple(drop_prefixes)
    if not query or not prefixes:
        return query

    kept = []
    for pair in query.split('&'):
        if not pair:
            continue
        key = unquote_plus(pair.split('=', 1)[0])
        if key.startswith(prefixes):
            continue
        kept.append(pair)
    return '&'.join(kept)


def canonicalize(raw: str, drop_query_prefixes: Iterable[str] = ()) -> Optional[str]:
    """
    Normalize a raw URL string.

    Args:
        raw: URL as found in a seed list, feed, sitemap or page
        drop_query_prefixes: query keys starting with any of these are removed

    Returns:
        The canonical https URL, or None if raw is not an absolute URL
    """
    if not raw or not isinstance(raw, str):
        return None

    try:
        parsed = urlsplit(raw.strip())
        hostname = parsed.hostname
        port = parsed.port
    except ValueError:
        return None

    if not parsed.scheme or not hostname:
        return None

    netloc = hostname.lower()
    if ':' in netloc:
        netloc = f"[{netloc}]"
    if port is not None and port != 443:
        netloc = f"{netloc}:{port}"
    if parsed.username is not None:
        userinfo = parsed.username
        if parsed.password is not None:
            userinfo = f"{userinfo}:{parsed.password}"
        netloc = f"{userinfo}@{netloc}"

    path = parsed.path or '/'
    last_segment = path.rsplit('/', 1)[-1]
    if not path.endswith('/') and '.' not in last_segment:
        path += '/'

    query = _strip_query(parsed.query, drop_query_prefixes)

    return urlunsplit(('https', netloc, path, query, ''))
