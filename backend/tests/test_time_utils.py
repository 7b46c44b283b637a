from datetime import date, datetime, timedelta, timezone

import pytest

from bookledger.time_utils import month_bounds, parse_occurred_at, resolve_cutoff, to_utc_z


def test_date_cutoff_is_end_of_day():
    expected = datetime(2024, 12, 31, 23, 59, 59, 999999)
    assert resolve_cutoff("2024-12-31") == expected
    assert resolve_cutoff(date(2024, 12, 31)) == expected


def test_datetime_cutoff_is_exact_instant():
    assert resolve_cutoff("2024-12-31T10:00:00Z") == datetime(2024, 12, 31, 10, 0, 0)
    assert resolve_cutoff("2024-12-31T10:00:00+06:00") == datetime(2024, 12, 31, 4, 0, 0)


def test_aware_datetime_normalized_to_naive_utc():
    aware = datetime(2024, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=6)))
    assert resolve_cutoff(aware) == datetime(2024, 6, 1, 6, 0)


def test_bad_cutoff_raises_value_error():
    with pytest.raises(ValueError):
        resolve_cutoff("yesterday")
    with pytest.raises(ValueError):
        resolve_cutoff(20241231)


def test_month_bounds():
    opening, closing = month_bounds(2024, 3)
    assert opening == datetime(2024, 2, 29, 23, 59, 59, 999999)
    assert closing == datetime(2024, 3, 31, 23, 59, 59, 999999)

    opening, closing = month_bounds(2024, 12)
    assert opening.date() == date(2024, 11, 30)
    assert closing.date() == date(2024, 12, 31)


def test_consecutive_months_share_a_boundary():
    _, end_of_march = month_bounds(2024, 3)
    start_of_april, _ = month_bounds(2024, 4)
    assert end_of_march == start_of_april


def test_occurred_at_date_means_midnight():
    assert parse_occurred_at("2024-03-05") == datetime(2024, 3, 5)
    assert parse_occurred_at(date(2024, 3, 5)) == datetime(2024, 3, 5)


def test_to_utc_z():
    assert to_utc_z(datetime(2024, 3, 5, 10, 30, 15, 500)) == "2024-03-05T10:30:15Z"
    assert to_utc_z(None) is None
