from __future__ import annotations

from datetime import date, datetime

import pytest

from school_portal.common.datetime_utils import require_iso_date
from school_portal.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "value",
    ["2026-03-10", " 2026-03-10 ", "2026-03-10T08:00:00", date(2026, 3, 10), datetime(2026, 3, 10, 8, 0)],
)
def test_accepts_dates_and_timestamps(value):
    assert require_iso_date(value, "fromDate") == date(2026, 3, 10)


@pytest.mark.parametrize("value", ["2026-03-10xyz", "2026-03-10 junk", "2026-03-10Tnoon", "10/03/2026", "", None])
def test_rejects_anything_else(value):
    with pytest.raises(ValidationError, match="fromDate must be a date"):
        require_iso_date(value, "fromDate")
