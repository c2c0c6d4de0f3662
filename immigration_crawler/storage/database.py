"""
URL store for crawl decisions.
Supports both Redis and file-based storage.

Writes are buffered by DatabaseManager and flushed in batches. A flush always
writes "seen" records before "checked" records, so a reader of the store never
finds a decision for a URL that has no seen record.
"""

import json
import logging
import os
import tempfile
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..utils.config import DatabaseConfig, RedisConfig


class DatabaseError(Exception):
    """Custom exception for database operations."""
    pass


@dataclass
class SeenRecord:
    """A URL admitted to the frontier."""
    url: str
    domain: str
    depth: int
    source_type: str
    discovered_from: Optional[str] = None
    raw_url: Optional[str] = None


@dataclass
class CheckedRecord:
    """The outcome of fetching and scoring a URL."""
    url: str
    status: str
    relevant: bool
    score: int
    reason: str
    http_status: Optional[int] = None
    content_type: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StorageBackend:
    """Abstract base class for storage backends."""

    async def initialize(self):
        """Initialize the storage backend."""
        raise NotImplementedError

    async def upsert_seen(self, records: List[SeenRecord]):
        """Insert or update seen records keyed by URL."""
        raise NotImplementedError

    async def update_checked(self, records: List[CheckedRecord]):
        """Apply checked records to URLs that already exist."""
        raise NotImplementedError

    async def get_record(self, url: str) -> Optional[Dict[str, Any]]:
        """Retrieve the stored record for a URL."""
        raise NotImplementedError

    async def count_urls(self) -> int:
        """Count stored URLs."""
        raise NotImplementedError

    async def close(self):
        """Close storage connections."""
        raise NotImplementedError


class FileStorageBackend(StorageBackend):
    """JSON file storage backend for development and small-scale deployments."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.records: Dict[str, Dict[str, Any]] = {}
        self.logger = logging.getLogger(__name__)

    async def initialize(self):
        """Load existing records, moving a corrupt file aside."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DatabaseError(f"Failed to initialize file storage: {e}") from e

        if not self.path.exists():
            self.records = {}
            return

        try:
            raw = self.path.read_text(encoding='utf-8').strip()
            data = json.loads(raw) if raw else {}
            if not isinstance(data, dict):
                raise ValueError("root is not an object")
            self.records = data
        except (ValueError, UnicodeDecodeError) as e:
            backup = self.path.with_name(f"{self.path.stem}.corrupt.{int(time.time())}.json")
            self.logger.warning(f"{self.path} was corrupt ({e}); moved to {backup}")
            try:
                os.replace(self.path, backup)
            except OSError as move_error:
                raise DatabaseError(f"Could not move corrupt store aside: {move_error}") from move_error
            self.records = {}
        except OSError as e:
            raise DatabaseError(f"Failed to read {self.path}: {e}") from e

        self.logger.info(f"File storage loaded {len(self.records)} URLs from {self.path}")

    async def upsert_seen(self, records: List[SeenRecord]):
        now = _now_iso()
        for record in records:
            existing = self.records.get(record.url)
            if existing is None:
                self.records[record.url] = {
                    **asdict(record),
                    'status': 'pending',
                    'relevant': False,
                    'score': 0,
                    'reason': '',
                    'http_status': None,
                    'content_type': None,
                    'first_seen_at': now,
                    'last_seen_at': now,
                    'last_checked_at': None,
                }
            else:
                existing.update(asdict(record))
                existing['last_seen_at'] = now
        self._save()

    async def update_checked(self, records: List[CheckedRecord]):
        now = _now_iso()
        for record in records:
            existing = self.records.get(record.url)
            if existing is None:
                self.logger.warning(f"Checked record for unknown URL skipped: {record.url}")
                continue
            existing.update(asdict(record))
            existing['last_checked_at'] = now
            existing['last_seen_at'] = now
        self._save()

    def _save(self):
        """Write the whole store through a temporary file and an atomic rename."""
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(dict(sorted(self.records.items())), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise DatabaseError(f"Failed to write {self.path}: {e}") from e

    async def get_record(self, url: str) -> Optional[Dict[str, Any]]:
        record = self.records.get(url)
        return dict(record) if record is not None else None

    async def count_urls(self) -> int:
        return len(self.records)

    async def close(self):
        self.logger.info(f"File storage closed with {len(self.records)} URLs")


class RedisStorageBackend(StorageBackend):
    """Redis storage backend: one hash per URL."""

    def __init__(self, config: RedisConfig, client: Optional[redis.Redis] = None):
        self.config = config
        self.key_prefix = config.key_prefix
        self.client = client
        self.logger = logging.getLogger(__name__)

    def _key(self, url: str) -> str:
        return f"{self.key_prefix}{url}"

    @staticmethod
    def _encode(record) -> Dict[str, Any]:
        """Redis hashes hold strings and numbers only."""
        encoded = {}
        for key, value in asdict(record).items():
            if value is None:
                encoded[key] = ""
            elif isinstance(value, bool):
                encoded[key] = int(value)
            else:
                encoded[key] = value
        return encoded

    async def initialize(self):
        if self.client is None:
            self.client = redis.Redis(
                host=self.config.host,
                port=self.config.port,
                db=self.config.db,
                password=self.config.password,
                decode_responses=True
            )
        try:
            await self.client.ping()
        except RedisError as e:
            raise DatabaseError(f"Redis connection failed: {e}") from e
        self.logger.info("Redis storage connection established")

    async def upsert_seen(self, records: List[SeenRecord]):
        now = _now_iso()
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                for record in records:
                    key = self._key(record.url)
                    pipe.hsetnx(key, 'first_seen_at', now)
                    pipe.hsetnx(key, 'status', 'pending')
                    pipe.hset(key, mapping={**self._encode(record), 'last_seen_at': now})
                await pipe.execute()
        except RedisError as e:
            raise DatabaseError(f"Failed to upsert seen URLs: {e}") from e

    async def update_checked(self, records: List[CheckedRecord]):
        now = _now_iso()
        try:
            async with self.client.pipeline(transaction=False) as pipe:
                for record in records:
                    pipe.exists(self._key(record.url))
                exists = await pipe.execute()

            async with self.client.pipeline(transaction=True) as pipe:
                for record, present in zip(records, exists):
                    if not present:
                        self.logger.warning(f"Checked record for unknown URL skipped: {record.url}")
                        continue
                    pipe.hset(self._key(record.url), mapping={
                        **self._encode(record),
                        'last_checked_at': now,
                        'last_seen_at': now,
                    })
                await pipe.execute()
        except RedisError as e:
            raise DatabaseError(f"Failed to update checked URLs: {e}") from e

    async def get_record(self, url: str) -> Optional[Dict[str, Any]]:
        try:
            record = await self.client.hgetall(self._key(url))
        except RedisError as e:
            raise DatabaseError(f"Failed to read {url}: {e}") from e
        return record or None

    async def count_urls(self) -> int:
        count = 0
        try:
            async for _ in self.client.scan_iter(match=f"{self.key_prefix}*"):
                count += 1
        except RedisError as e:
            raise DatabaseError(f"Failed to count URLs: {e}") from e
        return count

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            self.logger.info("Redis storage connection closed")


class DatabaseManager:
    """
    Buffers seen/checked records for one run and flushes them in batches.
    """

    def __init__(self, config: DatabaseConfig, redis_config: Optional[RedisConfig] = None,
                 backend: Optional[StorageBackend] = None):
        self.config = config
        self.redis_config = redis_config or RedisConfig()
        self.backend = backend
        self.seen_buffer: List[SeenRecord] = []
        self.checked_buffer: List[CheckedRecord] = []
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'flushes': 0,
            'seen_written': 0,
            'checked_written': 0,
        }

    async def initialize(self):
        """Create and initialize the configured backend."""
        if self.backend is None:
            if self.config.type == 'redis':
                self.backend = RedisStorageBackend(self.redis_config)
            elif self.config.type == 'file':
                self.backend = FileStorageBackend(self.config.file.get('path', 'data/urls.json'))
            else:
                raise DatabaseError(f"Unsupported database type: {self.config.type}")

        await self.backend.initialize()
        self.logger.info(f"Database manager initialized with {type(self.backend).__name__}")

    def buffer_seen(self, record: SeenRecord):
        self.seen_buffer.append(record)

    def buffer_checked(self, record: CheckedRecord):
        self.checked_buffer.append(record)

    async def flush(self):
        """
        Write buffered records, seen first.

        Raises:
            DatabaseError: if the backend cannot persist the batch
        """
        if self.seen_buffer:
            seen, self.seen_buffer = self.seen_buffer, []
            await self.backend.upsert_seen(seen)
            self.stats['seen_written'] += len(seen)

        if self.checked_buffer:
            checked, self.checked_buffer = self.checked_buffer, []
            await self.backend.update_checked(checked)
            self.stats['checked_written'] += len(checked)

        self.stats['flushes'] += 1
        self.logger.debug(f"Flushed buffers: {self.stats}")

    async def count_urls(self) -> int:
        return await self.backend.count_urls()

    async def get_record(self, url: str) -> Optional[Dict[str, Any]]:
        return await self.backend.get_record(url)

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    async def close(self):
        if self.backend is not None:
            await self.backend.close()
