"""
Storage

- hub_db.py - Log messages and command queue (SQLite)
- kv_store.py - Hub-wide key-value state (SQLite)
"""

from .hub_db import HubDatabase, StoredCommand, StoredLog
from .kv_store import KeyValueStore

__all__ = ["HubDatabase", "StoredCommand", "StoredLog", "KeyValueStore"]
