from datetime import date, datetime

from bolsozen.dates import add_months, in_month, month_bounds, month_key, month_start, parse_date


def test_month_start_accepts_keys_and_dates():
    assert month_start('2024-02') == date(2024, 2, 1)
    assert month_start('2024-02-17') == date(2024, 2, 1)
    assert month_start(datetime(2024, 2, 17, 10, 30)) == date(2024, 2, 1)


def test_month_bounds_follow_calendar():
    assert month_bounds('2023-02') == (date(2023, 2, 1), date(2023, 2, 28))
    assert month_bounds('2024-02') == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds('2024-04')[1] == date(2024, 4, 30)


def test_in_month_and_key():
    assert in_month(date(2024, 4, 30), '2024-04')
    assert not in_month(date(2024, 5, 1), '2024-04')
    assert month_key(date(2024, 4, 9)) == '2024-04'


def test_add_months_clamps_and_wraps():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 1, 15), -1) == date(2023, 12, 15)


def test_parse_date_is_lenient():
    assert parse_date('2024-03-05T12:00:00') == date(2024, 3, 5)
    assert parse_date('') is None
    assert parse_date('not a date') is None
