from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime

import pytest

from school_portal.attendance.drafts import InMemoryDraftStore
from school_portal.attendance.model import AttendanceRecord
from school_portal.attendance.service import AttendanceService
from school_portal.common.clock import FixedClock
from school_portal.container import LedgerSettings, assemble
from school_portal.core.enums import LeaveSession, LeaveStatus
from school_portal.core.exceptions import DuplicateAttendanceError
from school_portal.dashboard.service import DashboardService
from school_portal.leave.balance import LeaveBalanceService
from school_portal.leave.model import LeaveBalance, LeaveRequest
from school_portal.leave.service import LeaveRequestService
from school_portal.roster.model import SchoolClass, Student

TEACHER_ID = 10
OTHER_TEACHER_ID = 20
ADMIN_ID = 1


class FakeRosterRepo:
    def __init__(self, classes, students):
        self._classes = {c.class_id: c for c in classes}
        self._students = {s.student_id: s for s in students}

    def list_classes_for_teacher(self, teacher_id):
        return [c for c in self._classes.values() if c.teacher_id == int(teacher_id)]

    def list_all_classes(self):
        return list(self._classes.values())

    def list_students(self, class_id):
        rows = [s for s in self._students.values() if s.class_id == int(class_id) and s.is_active]
        return sorted(rows, key=lambda s: s.roll_number)

    def count_students(self, class_ids):
        ids = set(class_ids)
        return sum(1 for s in self._students.values() if s.class_id in ids and s.is_active)

    def get_students(self, student_ids):
        return [self._students[i] for i in student_ids if i in self._students]


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.records: dict[int, AttendanceRecord] = {}
        self.audit = []

    def seed(self, **kwargs) -> AttendanceRecord:
        record = AttendanceRecord(record_id=self._next_id, **kwargs)
        self._next_id += 1
        self.records[record.record_id] = record
        return record

    def get_by_id(self, record_id):
        return self.records.get(int(record_id))

    def find_existing(self, *, student_ids, attendance_date):
        ids = set(student_ids)
        return [r for r in self.records.values() if r.student_id in ids and r.attendance_date == attendance_date]

    def create_many(self, rows):
        taken = {(r.student_id, r.attendance_date) for r in self.records.values()}
        keys = [(row.student_id, row.attendance_date) for row in rows]
        if len(set(keys)) != len(keys) or taken.intersection(keys):
            raise DuplicateAttendanceError("Attendance already marked for this date")
        return [
            self.seed(
                student_id=row.student_id,
                class_id=row.class_id,
                attendance_date=row.attendance_date,
                status=row.status,
                created_at=row.created_at,
                marked_by=row.marked_by,
            )
            for row in rows
        ]

    def update_status(self, *, record_id, status, reason, updated_at):
        record = self.records.get(int(record_id))
        if not record:
            return False
        self.records[record.record_id] = replace(
            record, status=status, updated_at=updated_at, last_modified_reason=reason
        )
        return True

    def add_audit_entry(self, entry):
        self.audit.append(entry)

    def list_audit_entries(self, record_id):
        return [e for e in self.audit if e.record_id == int(record_id)]

    def list_for_class_range(self, *, class_id, start_date, end_date):
        rows = [
            r
            for r in self.records.values()
            if r.class_id == int(class_id) and start_date <= r.attendance_date <= end_date
        ]
        return sorted(rows, key=lambda r: (r.attendance_date, r.student_id))

    def list_for_classes(self, *, class_ids, start_date=None, end_date=None):
        ids = set(class_ids)
        return [
            r
            for r in self.records.values()
            if r.class_id in ids
            and (start_date is None or r.attendance_date >= start_date)
            and (end_date is None or r.attendance_date <= end_date)
        ]


class FakeLeaveRepo:
    def __init__(self):
        self._next_id = 1
        self.requests: dict[int, LeaveRequest] = {}

    def create(self, *, requester_id, application, total_days, created_at):
        a = application
        req = LeaveRequest(
            request_id=self._next_id,
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
        self._next_id += 1
        self.requests[req.request_id] = req
        return req

    def get(self, request_id):
        return self.requests.get(int(request_id))

    def list_active_for_requester(self, requester_id):
        active = {LeaveStatus.PENDING, LeaveStatus.APPROVED}
        return [r for r in self.requests.values() if r.requester_id == int(requester_id) and r.status in active]

    def list_requests(self, *, requester_id=None, status=None, leave_type=None, priority=None, year=None, limit=200):
        rows = [
            r
            for r in self.requests.values()
            if (requester_id is None or r.requester_id == int(requester_id))
            and (status is None or r.status == status)
            and (leave_type is None or r.leave_type == leave_type)
            and (priority is None or r.priority == priority)
            and (year is None or r.from_date.year == int(year))
        ]
        rows.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        return rows if limit is None else rows[:limit]

    def count_requests(self, *, requester_id=None, status=None):
        return len(self.list_requests(requester_id=requester_id, status=status, limit=None))

    def mark_decided(self, *, request_id, status, reviewed_by, reviewed_at, admin_remark=None):
        req = self.requests.get(int(request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.requests[req.request_id] = replace(
            req, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, admin_remark=admin_remark
        )
        return True

    def mark_cancelled(self, *, request_id, cancelled_by, cancelled_at, cancellation_reason):
        req = self.requests.get(int(request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.requests[req.request_id] = replace(
            req,
            status=LeaveStatus.CANCELLED,
            cancelled_by=cancelled_by,
            cancelled_at=cancelled_at,
            cancellation_reason=cancellation_reason,
        )
        return True


class FakeBalanceRepo:
    def __init__(self):
        self.accounts: dict[tuple, LeaveBalance] = {}
        self.entries: dict[int, float] = {}

    def find(self, *, requester_id, leave_type, cycle_year):
        return self.accounts.get((int(requester_id), leave_type, int(cycle_year)))

    def get_or_create(self, *, requester_id, leave_type, cycle_year, default_total):
        key = (int(requester_id), leave_type, int(cycle_year))
        if key not in self.accounts:
            self.accounts[key] = LeaveBalance(
                requester_id=int(requester_id), leave_type=leave_type, cycle_year=int(cycle_year), total=default_total
            )
        return self.accounts[key]

    def has_entry(self, request_id):
        return int(request_id) in self.entries

    def add_used(self, *, requester_id, leave_type, cycle_year, days, request_id=None):
        key = (int(requester_id), leave_type, int(cycle_year))
        account = self.accounts[key]
        self.accounts[key] = replace(account, used=max(account.used + days, 0.0))
        if request_id is not None:
            if days > 0:
                self.entries.setdefault(int(request_id), days)
            else:
                self.entries.pop(int(request_id), None)
        return self.accounts[key]


class RecordingTransactions:
    """Stands in for DatabaseConnection.atomic(); records outcomes."""

    def __init__(self):
        self.events: list[str] = []

    @contextmanager
    def atomic(self):
        self.events.append("begin")
        try:
            yield
        except Exception:
            self.events.append("rollback")
            raise
        self.events.append("commit")


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.events: list[tuple[str, int]] = []
        self._fail = fail

    def _record(self, event, request):
        self.events.append((event, request.request_id))
        if self._fail:
            raise RuntimeError("mail server down")

    def leave_submitted(self, request):
        self._record("leave_submitted", request)

    def leave_decided(self, request):
        self._record("leave_decided", request)

    def leave_cancelled(self, request):
        self._record("leave_cancelled", request)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture
def roster():
    classes = [
        SchoolClass(class_id=1, class_name="Grade 6", section="A", teacher_id=TEACHER_ID),
        SchoolClass(class_id=2, class_name="Grade 7", section="B", teacher_id=TEACHER_ID),
        SchoolClass(class_id=3, class_name="Grade 8", section="C", teacher_id=OTHER_TEACHER_ID),
    ]
    students = [
        Student(student_id=101, roll_number="6A-01", class_id=1, full_name="Aarav Mehta"),
        Student(student_id=102, roll_number="6A-02", class_id=1, full_name="Diya Sharma"),
        Student(student_id=103, roll_number="6A-03", class_id=1, full_name="Kabir Nair"),
        Student(student_id=201, roll_number="7B-01", class_id=2, full_name="Meera Iyer"),
        Student(student_id=202, roll_number="7B-02", class_id=2, full_name="Rohan Gupta"),
        Student(student_id=199, roll_number="6A-99", class_id=1, full_name="Left School", is_active=False),
    ]
    return FakeRosterRepo(classes, students)


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def leave_repo():
    return FakeLeaveRepo()


@pytest.fixture
def balance_repo():
    return FakeBalanceRepo()


@pytest.fixture
def transactions():
    return RecordingTransactions()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def drafts():
    return InMemoryDraftStore()


@pytest.fixture
def attendance_service(attendance_repo, roster, clock, drafts, transactions):
    return AttendanceService(attendance_repo, roster, clock=clock, drafts=drafts, transactions=transactions)


@pytest.fixture
def balance_service(balance_repo, clock):
    return LeaveBalanceService(balance_repo, clock=clock)


@pytest.fixture
def leave_service(leave_repo, balance_service, clock, notifier, transactions):
    return LeaveRequestService(
        leave_repo, balance_service, clock=clock, notifier=notifier, transactions=transactions
    )


@pytest.fixture
def dashboard_service(roster, attendance_repo, leave_service, clock):
    return DashboardService(roster, attendance_repo, leave_service, clock=clock)


@pytest.fixture
def container(roster, attendance_repo, leave_repo, balance_repo, clock, notifier, transactions):
    return assemble(
        roster_repo=roster,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        balance_repo=balance_repo,
        transactions=transactions,
        clock=clock,
        notifier=notifier,
        settings=LedgerSettings(),
    )


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)
