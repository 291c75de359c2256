"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_LOCK_HOURS = 24
WEAK_ATTENDANCE_THRESHOLD = 75.0
DEFAULT_WEAK_STUDENT_DAYS = 7
DEFAULT_LIST_LIMIT = 200
MAX_REASON_LENGTH = 500

QUOTA_POLICY_WARN = "warn"
QUOTA_POLICY_ENFORCE = "enforce"
