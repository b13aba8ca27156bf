from datetime import datetime

from fadtrack.core.dates import get_range, parse_datetime, try_parse_date, try_parse_month


def test_parse_datetime_accepts_client_formats():
    assert parse_datetime("2024-03-05") == datetime(2024, 3, 5)
    assert parse_datetime("05/03/2024") == datetime(2024, 3, 5)
    assert parse_datetime("2024-03-05 14:30") == datetime(2024, 3, 5, 14, 30)
    assert parse_datetime("2024-03-05T14:30:15.5") == datetime(2024, 3, 5, 14, 30, 15, 500000)

    with_zone = parse_datetime("2024-03-05T14:30:00Z")
    assert with_zone.utcoffset().total_seconds() == 0
    assert with_zone.hour == 14


def test_parse_datetime_returns_none_for_garbage():
    assert parse_datetime(None) is None
    assert parse_datetime("") is None
    assert parse_datetime("kemarin") is None
    assert parse_datetime("2024-02-30") is None


def test_day_and_month_terms():
    assert try_parse_date("05/03") == datetime(datetime.now().year, 3, 5)
    assert try_parse_date("2024-13") is None
    assert try_parse_month("2024-02") == (datetime(2024, 2, 1), datetime(2024, 2, 29, 23, 59, 59, 999999))
    assert try_parse_month("12/2023")[1] == datetime(2023, 12, 31, 23, 59, 59, 999999)
    assert try_parse_month("2024-13") is None


def test_get_range_periods():
    assert get_range("2024-03-06", "day") == (
        datetime(2024, 3, 6),
        datetime(2024, 3, 6, 23, 59, 59, 999999),
    )
    start, end = get_range("2024-03-06", "week")
    assert start == datetime(2024, 3, 4)
    assert end == datetime(2024, 3, 10, 23, 59, 59, 999999)
    start, _ = get_range("2024-03-06", None)
    assert start == datetime(2024, 3, 1)
