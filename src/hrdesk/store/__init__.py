"""Record store access used by the salary core."""

from hrdesk.store.base import RecordStore, StoreProvider
from hrdesk.store.sql import SqlRecordStore

__all__ = ["RecordStore", "StoreProvider", "SqlRecordStore"]
