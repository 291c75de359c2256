from __future__ import annotations

import pytest

from school_portal.core.enums import LeaveType
from school_portal.core.exceptions import ValidationError
from school_portal.leave.balance import DEFAULT_QUOTAS, LeaveBalanceService


def test_accounts_start_with_default_quota(balance_service):
    balance = balance_service.get_balance(7)

    assert balance["Sick"] == {"total": 10.0, "used": 0.0, "available": 10.0}
    assert balance["Maternity"]["total"] == 90.0
    assert set(balance) == {t.value for t, quota in DEFAULT_QUOTAS.items() if quota > 0}


def test_reserve_is_idempotent_per_request(balance_service):
    balance_service.reserve(7, LeaveType.CASUAL, 2, request_id=41)
    again = balance_service.reserve(7, LeaveType.CASUAL, 2, request_id=41)

    assert again.used == 2.0
    assert balance_service.available(7, "Casual") == 10.0


def test_release_undoes_a_reservation_and_never_goes_below_zero(balance_service, balance_repo):
    balance_service.reserve(7, LeaveType.SICK, 3, request_id=5)
    assert balance_repo.has_entry(5)

    released = balance_service.release(7, LeaveType.SICK, 3, request_id=5)
    assert released.used == 0.0
    assert not balance_repo.has_entry(5)

    assert balance_service.release(7, LeaveType.SICK, 4).used == 0.0


@pytest.mark.parametrize("method", ["reserve", "release"])
def test_negative_days_rejected(balance_service, method):
    with pytest.raises(ValidationError):
        getattr(balance_service, method)(7, LeaveType.SICK, -1)


def test_years_are_separate_cycles(balance_service):
    balance_service.reserve(7, LeaveType.SICK, 4, year=2025)

    assert balance_service.available(7, LeaveType.SICK, year=2025) == 6.0
    assert balance_service.available(7, LeaveType.SICK, year=2026) == 10.0


def test_custom_quotas(balance_repo, clock):
    service = LeaveBalanceService(balance_repo, clock=clock, quotas={LeaveType.BEREAVEMENT: 3})

    assert service.available(7, LeaveType.BEREAVEMENT) == 3.0
    assert service.available(7, LeaveType.OTHER) is None


def test_unknown_leave_type(balance_service):
    with pytest.raises(ValidationError):
        balance_service.available(7, "Sabbatical")


def test_reads_never_create_accounts(balance_service, balance_repo):
    assert balance_service.get_balance(7)["Casual"]["available"] == 12.0
    assert balance_service.available(7, LeaveType.SICK) == 10.0
    assert balance_service.available(7, LeaveType.OTHER) is None

    assert balance_repo.accounts == {}


def test_reads_see_stored_accounts(balance_service, balance_repo):
    balance_service.reserve(7, LeaveType.SICK, 2, request_id=3)

    assert balance_service.available(7, LeaveType.SICK) == 8.0
    assert list(balance_repo.accounts) == [(7, LeaveType.SICK, 2026)]
