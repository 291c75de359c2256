from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import LeavePriority, LeaveSession, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveApplication, LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = """
    request_id, requester_id, leave_type, from_date, to_date, half_day, session,
    total_days, reason, priority, status, created_at,
    contact_number, alternative_email, attachment_ref,
    admin_remark, reviewed_by, reviewed_at,
    cancelled_by, cancelled_at, cancellation_reason
"""


def _to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        requester_id=int(r["requester_id"]),
        leave_type=LeaveType(r["leave_type"]),
        from_date=r["from_date"],
        to_date=r["to_date"],
        half_day=bool(r["half_day"]),
        session=LeaveSession(r["session"]),
        total_days=float(r["total_days"]),
        reason=r["reason"],
        priority=LeavePriority(r["priority"]),
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        contact_number=r.get("contact_number"),
        alternative_email=r.get("alternative_email"),
        attachment_ref=r.get("attachment_ref"),
        admin_remark=r.get("admin_remark"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        cancelled_by=r.get("cancelled_by"),
        cancelled_at=r.get("cancelled_at"),
        cancellation_reason=r.get("cancellation_reason"),
    )


def _where(
    *,
    requester_id: Optional[int] = None,
    status: Optional[LeaveStatus] = None,
    leave_type: Optional[LeaveType] = None,
    priority: Optional[LeavePriority] = None,
    year: Optional[int] = None,
) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []

    if requester_id is not None:
        clauses.append("requester_id=%s")
        params.append(int(requester_id))
    if status is not None:
        clauses.append("status=%s")
        params.append(status.value)
    if leave_type is not None:
        clauses.append("leave_type=%s")
        params.append(leave_type.value)
    if priority is not None:
        clauses.append("priority=%s")
        params.append(priority.value)
    if year is not None:
        clauses.append("YEAR(from_date)=%s")
        params.append(int(year))

    return " AND ".join(clauses), params


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        requester_id: int,
        application: LeaveApplication,
        total_days: float,
        created_at: datetime,
    ) -> LeaveRequest:
        a = application
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    requester_id, leave_type, from_date, to_date, half_day, session, total_days,
                    reason, priority, status, contact_number, alternative_email, attachment_ref, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(requester_id),
                    a.leave_type.value,
                    a.from_date,
                    a.to_date,
                    1 if a.half_day else 0,
                    (a.session or LeaveSession.FULL_DAY).value,
                    total_days,
                    a.reason,
                    a.priority.value,
                    LeaveStatus.PENDING.value,
                    a.contact_number,
                    a.alternative_email,
                    a.attachment_ref,
                    created_at,
                ),
            )
            request_id = int(cur.lastrowid)

        return LeaveRequest(
            request_id=request_id,
            requester_id=int(requester_id),
            leave_type=a.leave_type,
            from_date=a.from_date,
            to_date=a.to_date,
            half_day=a.half_day,
            session=a.session or LeaveSession.FULL_DAY,
            total_days=total_days,
            reason=a.reason,
            priority=a.priority,
            status=LeaveStatus.PENDING,
            created_at=created_at,
            contact_number=a.contact_number,
            alternative_email=a.alternative_email,
            attachment_ref=a.attachment_ref,
        )

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_active_for_requester(self, requester_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE requester_id=%s AND status IN (%s, %s)
                ORDER BY from_date ASC
                FOR UPDATE
                """,
                (int(requester_id), LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_requests(
        self,
        *,
        requester_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        priority: Optional[LeavePriority] = None,
        year: Optional[int] = None,
        limit: Optional[int] = 200,
    ) -> Sequence[LeaveRequest]:
        where, params = _where(
            requester_id=requester_id, status=status, leave_type=leave_type, priority=priority, year=year
        )
        sql = f"SELECT {_COLUMNS} FROM leave_requests WHERE {where} ORDER BY created_at DESC, request_id DESC"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_request(r) for r in fetchall(cur)]

    def count_requests(self, *, requester_id: Optional[int] = None, status: Optional[LeaveStatus] = None) -> int:
        where, params = _where(requester_id=requester_id, status=status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM leave_requests WHERE {where}", tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def mark_decided(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_remark: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, admin_remark=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), reviewed_at, admin_remark, int(request_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def mark_cancelled(
        self,
        *,
        request_id: int,
        cancelled_by: int,
        cancelled_at: datetime,
        cancellation_reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, cancelled_by=%s, cancelled_at=%s, cancellation_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    LeaveStatus.CANCELLED.value,
                    int(cancelled_by),
                    cancelled_at,
                    cancellation_reason,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0
