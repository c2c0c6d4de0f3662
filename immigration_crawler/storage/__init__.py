"""
Storage layer for the immigration crawler.
"""

from .database import (
    CheckedRecord, DatabaseError, DatabaseManager, FileStorageBackend,
    RedisStorageBackend, SeenRecord, StorageBackend,
)

__all__ = [
    'CheckedRecord', 'DatabaseError', 'DatabaseManager', 'FileStorageBackend',
    'RedisStorageBackend', 'SeenRecord', 'StorageBackend',
]
