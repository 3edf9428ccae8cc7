"""In-memory research history store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional
from uuid import uuid4

from models import ResearchRecord


def _new_record_id() -> str:
    return f"research_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid4().hex[:8]}"


class HistoryStore(ABC):
    """Persistence boundary for completed research runs."""

    @abstractmethod
    def save(self, record: ResearchRecord) -> str:
        """Persist a record and return its id."""

    @abstractmethod
    def get(self, record_id: str) -> Optional[ResearchRecord]:
        pass

    @abstractmethod
    def list_recent(self, limit: int = 20) -> List[ResearchRecord]:
        pass


class InMemoryHistoryStore(HistoryStore):
    """Thread-safe store that keeps records for the life of the process."""

    def __init__(self) -> None:
        self._records: Dict[str, ResearchRecord] = {}
        self._order: List[str] = []
        self._lock = Lock()

    def save(self, record: ResearchRecord) -> str:
        record_id = _new_record_id()
        with self._lock:
            self._records[record_id] = record.model_copy(deep=True)
            self._order.append(record_id)
        return record_id

    def get(self, record_id: str) -> Optional[ResearchRecord]:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record else None

    def list_recent(self, limit: int = 20) -> List[ResearchRecord]:
        with self._lock:
            ids = list(reversed(self._order))[: max(0, int(limit))]
            return [self._records[rid].model_copy(deep=True) for rid in ids]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
