from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Optional, Protocol, Sequence

from ..attendance.repository import AttendanceRepository
from ..core.enums import AttendanceStatus


class AttendanceAnalytics(Protocol):
    """Computes per-student attendance percentages (0-100)."""

    def student_percentages(
        self,
        *,
        class_ids: Sequence[int],
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> Dict[int, float]:
        raise NotImplementedError


class LedgerAttendanceAnalytics(AttendanceAnalytics):
    """Percentages straight from ledger records: present days over marked days."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def student_percentages(
        self,
        *,
        class_ids: Sequence[int],
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> Dict[int, float]:
        records = self._attendance.list_for_classes(class_ids=class_ids, start_date=since, end_date=until)

        totals: Dict[int, list] = defaultdict(lambda: [0, 0])
        for r in records:
            t = totals[r.student_id]
            t[0] += 1
            if r.status == AttendanceStatus.PRESENT:
                t[1] += 1

        return {sid: round(present * 100.0 / total, 2) for sid, (total, present) in totals.items() if total}
