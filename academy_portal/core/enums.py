from enum import Enum


class CallerRole(str, Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"


class FeeStatus(str, Enum):
    pending = "pending"
    paid = "paid"


class AttendanceState(str, Enum):
    """Per (batch, date). RECORDED is terminal: records are never edited or deleted."""

    unrecorded = "unrecorded"
    recorded = "recorded"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"
