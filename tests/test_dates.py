from datetime import date
from zoneinfo import ZoneInfo

from engine import config
from engine.dates import (
    local_day_key,
    local_month_key,
    month_key,
    parse_month_key,
    same_local_day,
    shift_month,
    to_local,
    trailing_days,
    trailing_months,
)

UTC = ZoneInfo("UTC")
DHAKA = ZoneInfo("Asia/Dhaka")          # UTC+6, no DST
NEW_YORK = ZoneInfo("America/New_York")


def test_local_day_key_differs_from_utc_day():
    instant = "2024-03-01T20:00:00Z"
    assert local_day_key(instant, UTC) == date(2024, 3, 1)
    assert local_day_key(instant, DHAKA) == date(2024, 3, 2)


def test_local_day_key_west_of_utc_moves_back_a_day():
    assert local_day_key("2024-03-01T03:00:00Z", NEW_YORK) == date(2024, 2, 29)


def test_local_month_key_crosses_month_in_local_zone():
    assert local_month_key("2024-03-31T19:00:00Z", UTC) == (2024, 3)
    assert local_month_key("2024-03-31T19:00:00Z", DHAKA) == (2024, 4)


def test_same_local_day_depends_on_zone():
    a = "2024-03-01T00:30:00+06:00"
    b = "2024-03-01T23:30:00+06:00"
    assert same_local_day(a, b, DHAKA)
    assert not same_local_day(a, b, UTC)


def test_naive_value_is_local_wall_time():
    assert local_day_key("2024-03-01", DHAKA) == date(2024, 3, 1)
    assert to_local("2024-03-01T23:00:00", NEW_YORK).hour == 23


def test_ambient_zone_comes_from_config(monkeypatch):
    monkeypatch.setattr(config, "TIMEZONE", "Asia/Dhaka")
    assert local_day_key("2024-03-01T20:00:00Z") == date(2024, 3, 2)


def test_trailing_days_ends_with_today_and_crosses_leap_day():
    days = trailing_days("2024-03-02T12:00:00Z", 7, UTC)
    assert len(days) == 7
    assert days[0] == date(2024, 2, 25)
    assert days[-1] == date(2024, 3, 2)
    assert date(2024, 2, 29) in days


def test_trailing_months_crosses_year():
    months = trailing_months("2024-02-15T12:00:00Z", 6, UTC)
    assert months == [(2023, 9), (2023, 10), (2023, 11), (2023, 12), (2024, 1), (2024, 2)]


def test_shift_month_wraps_years():
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 3, 0) == (2024, 3)


def test_month_key_format():
    assert month_key(2024, 3) == "2024-03"
    assert parse_month_key("2024-03") == (2024, 3)
