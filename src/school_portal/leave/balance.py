from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from ..common.clock import Clock, SystemClock
from ..common.validators import require_enum
from ..core.enums import LeaveType
from ..core.exceptions import ValidationError
from .model import LeaveBalance
from .repository import LeaveBalanceRepository

logger = logging.getLogger(__name__)

DEFAULT_QUOTAS: Dict[LeaveType, float] = {
    LeaveType.SICK: 10,
    LeaveType.CASUAL: 12,
    LeaveType.EMERGENCY: 5,
    LeaveType.MATERNITY: 90,
    LeaveType.PATERNITY: 15,
    LeaveType.MEDICAL: 10,
    LeaveType.PERSONAL: 5,
    LeaveType.OTHER: 0,
    LeaveType.BEREAVEMENT: 0,
}


class LeaveBalanceService:
    """Annual leave quota per (requester, leave type).

    ``used`` only moves when a request enters Approved (reserve) or is reverted by a
    policy exception (release). Accounts are created lazily with the default quota.
    """

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        *,
        clock: Optional[Clock] = None,
        quotas: Optional[Mapping[LeaveType, float]] = None,
    ):
        self._balances = balances
        self._clock = clock or SystemClock()
        self._quotas = dict(DEFAULT_QUOTAS)
        if quotas:
            self._quotas.update(quotas)

    def _year(self, year: Optional[int]) -> int:
        return int(year) if year else self._clock.today().year

    def _account(self, requester_id: int, leave_type: LeaveType, year: int) -> LeaveBalance:
        return self._balances.get_or_create(
            requester_id=int(requester_id),
            leave_type=leave_type,
            cycle_year=year,
            default_total=float(self._quotas.get(leave_type, 0)),
        )

    def _view(self, requester_id: int, leave_type: LeaveType, year: int) -> LeaveBalance:
        """Stored account, or an unsaved one at the default quota."""
        account = self._balances.find(requester_id=int(requester_id), leave_type=leave_type, cycle_year=year)
        if account is not None:
            return account
        return LeaveBalance(
            requester_id=int(requester_id),
            leave_type=leave_type,
            cycle_year=year,
            total=float(self._quotas.get(leave_type, 0)),
        )

    def get_balance(self, requester_id: int, *, year: Optional[int] = None) -> dict:
        """Balance of every leave type that has a quota, keyed by the type's value."""
        cycle = self._year(year)
        out: dict = {}
        for leave_type in LeaveType:
            account = self._view(requester_id, leave_type, cycle)
            if account.total > 0:
                out[leave_type.value] = account.as_dict()
        return out

    def available(self, requester_id: int, leave_type, *, year: Optional[int] = None) -> Optional[float]:
        account = self._view(requester_id, require_enum(LeaveType, leave_type, "leave type"), self._year(year))
        if account.total <= 0:
            return None
        return account.available

    def reserve(
        self,
        requester_id: int,
        leave_type: LeaveType,
        days: float,
        *,
        request_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> LeaveBalance:
        if days < 0:
            raise ValidationError("Days to reserve cannot be negative")
        cycle = self._year(year)
        account = self._account(requester_id, leave_type, cycle)

        if request_id is not None and self._balances.has_entry(int(request_id)):
            logger.info("Leave request %s already reserved balance; skipping", request_id)
            return account

        updated = self._balances.add_used(
            requester_id=int(requester_id),
            leave_type=leave_type,
            cycle_year=cycle,
            days=float(days),
            request_id=request_id,
        )
        if updated.available < 0:
            logger.warning(
                "Leave balance over quota requester=%s type=%s year=%s used=%s total=%s",
                requester_id, leave_type.value, cycle, updated.used, updated.total,
            )
        return updated

    def release(
        self,
        requester_id: int,
        leave_type: LeaveType,
        days: float,
        *,
        request_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> LeaveBalance:
        if days < 0:
            raise ValidationError("Days to release cannot be negative")
        cycle = self._year(year)
        self._account(requester_id, leave_type, cycle)
        return self._balances.add_used(
            requester_id=int(requester_id),
            leave_type=leave_type,
            cycle_year=cycle,
            days=-float(days),
            request_id=request_id,
        )
