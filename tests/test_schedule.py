"""Unit tests for the calendar helpers behind fee months and session grids."""

from datetime import date, datetime, timezone

import pytest

from academy_portal.core.schedule import (
    billing_months,
    month_label,
    month_labels,
    normalize_date,
    normalize_weekdays,
    parse_month_label,
    session_dates,
)


def test_months_are_inclusive_on_both_ends() -> None:
    """Jan 15 - Mar 2 touches three calendar months."""
    assert month_labels(date(2025, 1, 15), date(2025, 3, 2)) == [
        "January 2025",
        "February 2025",
        "March 2025",
    ]


def test_months_cross_year_boundary() -> None:
    months = billing_months(date(2024, 11, 30), date(2025, 2, 1))
    assert [label for label, _ in months] == [
        "November 2024",
        "December 2024",
        "January 2025",
        "February 2025",
    ]
    assert [start for _, start in months] == [
        date(2024, 11, 1),
        date(2024, 12, 1),
        date(2025, 1, 1),
        date(2025, 2, 1),
    ]


def test_single_day_batch_bills_one_month() -> None:
    assert month_labels(date(2025, 6, 30), date(2025, 6, 30)) == ["June 2025"]


def test_inverted_range_bills_nothing() -> None:
    assert billing_months(date(2025, 7, 1), date(2025, 6, 1)) == []


def test_month_label_round_trip_is_case_insensitive() -> None:
    assert month_label(date(2025, 6, 17)) == "June 2025"
    assert parse_month_label("june 2025") == date(2025, 6, 1)


@pytest.mark.parametrize("label", ["June", "Juneteenth 2025", "2025 June", ""])
def test_parse_month_label_rejects_garbage(label: str) -> None:
    with pytest.raises(ValueError):
        parse_month_label(label)


def test_session_dates_stop_at_today() -> None:
    dates = session_dates(
        date(2025, 6, 2),
        date(2025, 6, 30),
        ["Monday", "Wednesday"],
        today=date(2025, 6, 10),
    )
    assert dates == [date(2025, 6, 2), date(2025, 6, 4), date(2025, 6, 9)]


def test_session_dates_stop_at_end_date() -> None:
    dates = session_dates(
        date(2025, 6, 2),
        date(2025, 6, 8),
        ["Saturday", "Sunday"],
        today=date(2025, 12, 31),
    )
    assert dates == [date(2025, 6, 7), date(2025, 6, 8)]


def test_session_dates_empty_before_start() -> None:
    assert session_dates(date(2025, 6, 2), date(2025, 6, 30), ["Monday"], today=date(2025, 6, 1)) == []


def test_session_dates_empty_without_days() -> None:
    assert session_dates(date(2025, 6, 2), date(2025, 6, 30), [], today=date(2025, 6, 30)) == []


def test_normalize_date_strips_time() -> None:
    assert normalize_date("2025-06-02T18:30:00Z") == date(2025, 6, 2)
    assert normalize_date("2025-06-02") == date(2025, 6, 2)
    assert normalize_date(datetime(2025, 6, 2, 23, 59, tzinfo=timezone.utc)) == date(2025, 6, 2)
    assert normalize_date(date(2025, 6, 2)) == date(2025, 6, 2)


def test_normalize_date_rejects_other_types() -> None:
    with pytest.raises(ValueError):
        normalize_date(20250602)


def test_normalize_weekdays_orders_and_dedupes() -> None:
    assert normalize_weekdays(["friday", "Monday", "MONDAY", " wednesday "]) == [
        "Monday",
        "Wednesday",
        "Friday",
    ]


def test_normalize_weekdays_rejects_unknown_day() -> None:
    with pytest.raises(ValueError):
        normalize_weekdays(["Funday"])
