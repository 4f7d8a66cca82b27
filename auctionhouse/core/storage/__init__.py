"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Auction records
- Refund and proceeds balances
- Payout journal
"""

from auctionhouse.core.storage.sqlite_adapter import SQLiteAdapter
from auctionhouse.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
