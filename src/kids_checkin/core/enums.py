from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Staff role used for permission checks."""

    ADMIN = "admin"
    STAFF = "staff"


class SessionState(str, Enum):
    """Lifecycle of one attendance record. OPEN -> CLOSED only."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class CloseScope(str, Enum):
    """What a check-out selector points at."""

    RECORD = "record"
    CHILD = "child"
    PARENT = "parent"


class MarkAction(str, Enum):
    """Bulk attendance action names used by the /mark endpoint."""

    CHECK_IN = "CheckIn"
    CHECK_OUT = "CheckOut"
