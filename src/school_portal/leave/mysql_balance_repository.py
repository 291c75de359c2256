from __future__ import annotations

from typing import Optional

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import LeaveBalance
from .repository import LeaveBalanceRepository


def _select_account(cur, requester_id: int, leave_type: LeaveType, cycle_year: int) -> Optional[dict]:
    cur.execute(
        """
        SELECT requester_id, leave_type, cycle_year, total, used
        FROM leave_balances
        WHERE requester_id=%s AND leave_type=%s AND cycle_year=%s
        """,
        (int(requester_id), leave_type.value, int(cycle_year)),
    )
    return fetchone(cur)


def _to_balance(r: dict) -> LeaveBalance:
    return LeaveBalance(
        requester_id=int(r["requester_id"]),
        leave_type=LeaveType(r["leave_type"]),
        cycle_year=int(r["cycle_year"]),
        total=float(r["total"]),
        used=float(r["used"]),
    )


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find(self, *, requester_id: int, leave_type: LeaveType, cycle_year: int) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            row = _select_account(cur, requester_id, leave_type, cycle_year)
            return _to_balance(row) if row else None

    def get_or_create(
        self,
        *,
        requester_id: int,
        leave_type: LeaveType,
        cycle_year: int,
        default_total: float,
    ) -> LeaveBalance:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO leave_balances(requester_id, leave_type, cycle_year, total, used)
                VALUES(%s,%s,%s,%s,0)
                """,
                (int(requester_id), leave_type.value, int(cycle_year), float(default_total)),
            )
            return _to_balance(_select_account(cur, requester_id, leave_type, cycle_year))

    def has_entry(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS hit FROM leave_balance_entries WHERE request_id=%s", (int(request_id),))
            return fetchone(cur) is not None

    def add_used(
        self,
        *,
        requester_id: int,
        leave_type: LeaveType,
        cycle_year: int,
        days: float,
        request_id: Optional[int] = None,
    ) -> LeaveBalance:
        with db_cursor(self._conn_factory) as (_, cur):
            if request_id is not None and days > 0:
                cur.execute(
                    """
                    INSERT IGNORE INTO leave_balance_entries(request_id, requester_id, leave_type, cycle_year, days)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(request_id), int(requester_id), leave_type.value, int(cycle_year), float(days)),
                )
                if cur.rowcount == 0:
                    # Entry already present: this request reserved before.
                    return _to_balance(_select_account(cur, requester_id, leave_type, cycle_year))
            elif request_id is not None:
                cur.execute("DELETE FROM leave_balance_entries WHERE request_id=%s", (int(request_id),))

            # Single-statement increment; never read used into Python first.
            cur.execute(
                """
                UPDATE leave_balances
                SET used = GREATEST(used + %s, 0)
                WHERE requester_id=%s AND leave_type=%s AND cycle_year=%s
                """,
                (float(days), int(requester_id), leave_type.value, int(cycle_year)),
            )
            return _to_balance(_select_account(cur, requester_id, leave_type, cycle_year))
