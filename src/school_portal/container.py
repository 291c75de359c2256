from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .attendance.drafts import AttendanceDraftStore, InMemoryDraftStore
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.clock import Clock, SystemClock
from .core.constants import ATTENDANCE_LOCK_HOURS, QUOTA_POLICY_WARN, WEAK_ATTENDANCE_THRESHOLD
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .database.transactions import TransactionManager
from .leave.balance import LeaveBalanceService
from .leave.mysql_balance_repository import MySQLLeaveBalanceRepository
from .leave.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave.repository import LeaveBalanceRepository, LeaveRequestRepository
from .leave.service import LeaveRequestService
from .notifications.emailjs import EmailJSNotifier
from .notifications.notifier import LeaveNotifier, LoggingNotifier
from .roster.mysql_roster_repository import MySQLRosterRepository
from .roster.repository import RosterRepository


@dataclass(frozen=True)
class LedgerSettings:
    lock_hours: int = ATTENDANCE_LOCK_HOURS
    weak_threshold: float = WEAK_ATTENDANCE_THRESHOLD
    quota_policy: str = QUOTA_POLICY_WARN
    emailjs: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_module(cls, settings) -> "LedgerSettings":
        return cls(
            lock_hours=int(getattr(settings, "ATTENDANCE_LOCK_HOURS", ATTENDANCE_LOCK_HOURS)),
            weak_threshold=float(getattr(settings, "WEAK_ATTENDANCE_THRESHOLD", WEAK_ATTENDANCE_THRESHOLD)),
            quota_policy=str(getattr(settings, "LEAVE_QUOTA_POLICY", QUOTA_POLICY_WARN)),
            emailjs={
                "service_id": getattr(settings, "EMAILJS_SERVICE_ID", ""),
                "template_id": getattr(settings, "EMAILJS_TEMPLATE_ID", ""),
                "public_key": getattr(settings, "EMAILJS_PUBLIC_KEY", ""),
                "private_key": getattr(settings, "EMAILJS_PRIVATE_KEY", ""),
                "admin_email": getattr(settings, "EMAILJS_ADMIN_EMAIL", None),
            },
        )


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    roster_repo: RosterRepository
    attendance_repo: AttendanceRepository
    leave_repo: LeaveRequestRepository
    balance_repo: LeaveBalanceRepository

    attendance_service: AttendanceService
    leave_balance_service: LeaveBalanceService
    leave_service: LeaveRequestService
    dashboard_service: DashboardService


def _notifier_from(emailjs: Mapping[str, Any]) -> LeaveNotifier:
    if not emailjs.get("service_id"):
        return LoggingNotifier()
    return EmailJSNotifier(
        service_id=str(emailjs.get("service_id") or ""),
        template_id=str(emailjs.get("template_id") or ""),
        public_key=str(emailjs.get("public_key") or ""),
        private_key=str(emailjs.get("private_key") or ""),
        admin_email=emailjs.get("admin_email"),
    )


def assemble(
    *,
    roster_repo: RosterRepository,
    attendance_repo: AttendanceRepository,
    leave_repo: LeaveRequestRepository,
    balance_repo: LeaveBalanceRepository,
    conn: Optional[DatabaseConnection] = None,
    transactions: Optional[TransactionManager] = None,
    clock: Optional[Clock] = None,
    drafts: Optional[AttendanceDraftStore] = None,
    notifier: Optional[LeaveNotifier] = None,
    settings: Optional[LedgerSettings] = None,
) -> Container:
    """Wire services on top of any set of repositories (MySQL in the app, fakes in tests)."""

    settings = settings or LedgerSettings()
    clock = clock or SystemClock()
    transactions = transactions if transactions is not None else conn

    attendance_service = AttendanceService(
        attendance_repo,
        roster_repo,
        clock=clock,
        drafts=drafts or InMemoryDraftStore(),
        transactions=transactions,
        lock_hours=settings.lock_hours,
    )
    leave_balance_service = LeaveBalanceService(balance_repo, clock=clock)
    leave_service = LeaveRequestService(
        leave_repo,
        leave_balance_service,
        clock=clock,
        notifier=notifier or _notifier_from(settings.emailjs),
        transactions=transactions,
        quota_policy=settings.quota_policy,
    )
    dashboard_service = DashboardService(
        roster_repo,
        attendance_repo,
        leave_service,
        clock=clock,
        weak_threshold=settings.weak_threshold,
    )

    return Container(
        conn=conn,
        roster_repo=roster_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        balance_repo=balance_repo,
        attendance_service=attendance_service,
        leave_balance_service=leave_balance_service,
        leave_service=leave_service,
        dashboard_service=dashboard_service,
    )


def build_container(*, db_config: dict, settings: Optional[LedgerSettings] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        roster_repo=MySQLRosterRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leave_repo=MySQLLeaveRequestRepository(conn),
        balance_repo=MySQLLeaveBalanceRepository(conn),
        conn=conn,
        settings=settings,
    )
