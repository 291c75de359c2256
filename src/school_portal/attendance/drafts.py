from __future__ import annotations

import threading
from datetime import date
from typing import Dict, Optional, Protocol, Tuple

from ..core.enums import AttendanceStatus

DraftKey = Tuple[int, date]


class AttendanceDraftStore(Protocol):
    """Side-table of unsent attendance selections keyed by (class_id, date)."""

    def save(self, class_id: int, attendance_date: date, selections: Dict[int, AttendanceStatus]) -> None:
        raise NotImplementedError

    def get(self, class_id: int, attendance_date: date) -> Optional[Dict[int, AttendanceStatus]]:
        raise NotImplementedError

    def clear(self, class_id: int, attendance_date: date) -> None:
        raise NotImplementedError


class InMemoryDraftStore(AttendanceDraftStore):
    def __init__(self):
        self._drafts: Dict[DraftKey, Dict[int, AttendanceStatus]] = {}
        self._lock = threading.Lock()

    def save(self, class_id: int, attendance_date: date, selections: Dict[int, AttendanceStatus]) -> None:
        with self._lock:
            self._drafts[(int(class_id), attendance_date)] = dict(selections)

    def get(self, class_id: int, attendance_date: date) -> Optional[Dict[int, AttendanceStatus]]:
        with self._lock:
            draft = self._drafts.get((int(class_id), attendance_date))
            return dict(draft) if draft is not None else None

    def clear(self, class_id: int, attendance_date: date) -> None:
        with self._lock:
            self._drafts.pop((int(class_id), attendance_date), None)
