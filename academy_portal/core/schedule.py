"""Calendar helpers shared by the fee ledger and attendance: billing months, session dates."""

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from academy_portal.core.enums import Weekday

_WEEKDAYS_BY_LOWER = {w.value.lower(): w for w in Weekday}
# date.weekday(): Monday == 0
_WEEKDAY_ORDER = list(Weekday)


def normalize_date(value) -> date:
    """
    Strip time-of-day. Accepts date, datetime or an ISO string ("2025-06-02",
    "2025-06-02T18:30:00", "2025-06-02T18:30:00Z").
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return date.fromisoformat(text[:10])
    raise ValueError(f"Unsupported date value: {value!r}")


def normalize_weekdays(days: Optional[Iterable[str]]) -> List[str]:
    """Canonical weekday names in Monday..Sunday order, duplicates dropped. Raises ValueError."""
    picked = set()
    for d in days or []:
        key = str(d).strip().lower()
        if key not in _WEEKDAYS_BY_LOWER:
            raise ValueError(f"Unknown weekday: {d}")
        picked.add(_WEEKDAYS_BY_LOWER[key])
    return [w.value for w in _WEEKDAY_ORDER if w in picked]


def weekday_name(d: date) -> str:
    return _WEEKDAY_ORDER[d.weekday()].value


def month_label(d: date) -> str:
    """Label for the month containing d, e.g. "June 2025"."""
    return f"{calendar.month_name[d.month]} {d.year}"


def _next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def billing_months(start_date: date, end_date: date) -> List[Tuple[str, date]]:
    """
    (label, first-of-month) for every calendar month touched by [start_date, end_date].

    Month granularity, not day-precise: Jan 15 - Mar 2 bills January, February and March.
    """
    months: List[Tuple[str, date]] = []
    if start_date > end_date:
        return months
    cursor = date(start_date.year, start_date.month, 1)
    while cursor <= end_date:
        months.append((month_label(cursor), cursor))
        cursor = _next_month(cursor)
    return months


def month_labels(start_date: date, end_date: date) -> List[str]:
    return [label for label, _ in billing_months(start_date, end_date)]


def parse_month_label(label: str) -> date:
    """Inverse of month_label: "June 2025" -> date(2025, 6, 1). Raises ValueError."""
    parts = label.strip().split()
    if len(parts) != 2:
        raise ValueError(f"Invalid month label: {label!r}")
    name, year = parts
    lookup = {calendar.month_name[i].lower(): i for i in range(1, 13)}
    month = lookup.get(name.lower())
    if month is None or not year.isdigit():
        raise ValueError(f"Invalid month label: {label!r}")
    return date(int(year), month, 1)


def session_dates(
    start_date: date,
    end_date: date,
    days: Iterable[str],
    today: date,
) -> List[date]:
    """
    Expected session grid: dates in [start_date, min(end_date, today)] whose weekday is
    one of `days`. Empty when the batch starts after `today`. Creates nothing.
    """
    wanted = set(normalize_weekdays(days))
    last = min(end_date, today)
    result: List[date] = []
    current = start_date
    while current <= last:
        if weekday_name(current) in wanted:
            result.append(current)
        current += timedelta(days=1)
    return result
