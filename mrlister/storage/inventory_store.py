"""
Inventory Store
===============
The seam between the export/publish code and wherever inventory actually lives.

The relational store belongs to the web application; exporters and publishers
only need the small read/write surface defined by InventoryStore. An in-memory
implementation backs the API server in development and the test suite.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, Union

from ..schema.inventory_record import InventoryRecord


class InventoryStore(ABC):
    """Read/write access to canonical inventory records"""

    @abstractmethod
    def get_record(self, record_id: int) -> Optional[InventoryRecord]:
        """Return the record, or None when it does not exist"""

    @abstractmethod
    def list_records(self, user_id: Optional[int] = None) -> List[InventoryRecord]:
        """All records, or those visible to user_id (its own plus unowned ones)"""

    @abstractmethod
    def save_record(self, record: InventoryRecord) -> InventoryRecord:
        """Insert or replace a record"""

    @abstractmethod
    def delete_record(self, record_id: int) -> bool:
        """Remove a record; False when it did not exist"""


class InMemoryInventoryStore(InventoryStore):
    """Thread-safe dictionary-backed store"""

    def __init__(self, records: Optional[List[Union[InventoryRecord, Dict[str, Any]]]] = None):
        self._records: Dict[int, InventoryRecord] = {}
        self.lock = threading.Lock()
        for record in records or []:
            self.save_record(record)

    def get_record(self, record_id: int) -> Optional[InventoryRecord]:
        with self.lock:
            return self._records.get(record_id)

    def list_records(self, user_id: Optional[int] = None) -> List[InventoryRecord]:
        with self.lock:
            records = list(self._records.values())
        if user_id is None:
            return records
        return [r for r in records if r.user_id in (None, user_id)]

    def save_record(self, record: Union[InventoryRecord, Dict[str, Any]]) -> InventoryRecord:
        if isinstance(record, dict):
            record = InventoryRecord.from_dict(record)
        with self.lock:
            self._records[record.id] = record
        return record

    def delete_record(self, record_id: int) -> bool:
        with self.lock:
            return self._records.pop(record_id, None) is not None


# Global store instance
_store_instance = None

def get_store() -> InventoryStore:
    """Get or create global inventory store instance"""
    global _store_instance
    if _store_instance is None:
        _store_instance = InMemoryInventoryStore()
    return _store_instance
