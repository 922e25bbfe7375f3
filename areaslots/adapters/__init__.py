"""
Adapters layer - Record store implementations.
"""

from .http_store import HttpRecordStore
from .json_store import JsonFileStore

__all__ = ["HttpRecordStore", "JsonFileStore"]
