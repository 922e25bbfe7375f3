"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, OwnerRecords, RecordStoreProtocol
from .cache import RecordCache

__all__ = ["AvailabilityService", "OwnerRecords", "RecordCache", "RecordStoreProtocol"]
