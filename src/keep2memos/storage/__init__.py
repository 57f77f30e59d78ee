"""Sync backends for the Keep to Memos importer."""

from keep2memos.storage.api_backend import MemosApiBackend
from keep2memos.storage.base import SyncBackend
from keep2memos.storage.db_backend import MemosDatabaseBackend

__all__ = [
    "SyncBackend",
    "MemosApiBackend",
    "MemosDatabaseBackend",
]
