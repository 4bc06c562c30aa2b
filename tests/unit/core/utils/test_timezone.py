"""
core/utils/timezone.py 테스트
"""

from datetime import date, datetime, timedelta, timezone

from core.utils.timezone import (
    BRT,
    add_months,
    clamp_day,
    last_day_of_month,
    local_date,
    now_utc,
    to_local,
)


class TestToLocal:
    def test_brt_offset(self) -> None:
        assert BRT.utcoffset(None) == timedelta(hours=-3)

    def test_previous_day_in_brt(self) -> None:
        """UTC 02:00 은 BRT 전날 23:00"""
        utc_dt = datetime(2026, 3, 1, 2, 0, tzinfo=timezone.utc)

        assert to_local(utc_dt).day == 28
        assert local_date(utc_dt) == date(2026, 2, 28)

    def test_naive_treated_as_utc(self) -> None:
        assert local_date(datetime(2026, 3, 1, 2, 0)) == date(2026, 2, 28)

    def test_now_utc_is_aware(self) -> None:
        assert now_utc().tzinfo == timezone.utc


class TestCalendar:
    def test_last_day_of_month(self) -> None:
        assert last_day_of_month(2026, 2) == 28
        assert last_day_of_month(2028, 2) == 29
        assert last_day_of_month(2026, 4) == 30

    def test_clamp_day(self) -> None:
        assert clamp_day(2026, 2, 31) == date(2026, 2, 28)
        assert clamp_day(2026, 1, 31) == date(2026, 1, 31)

    def test_add_months_year_rollover(self) -> None:
        assert add_months(2026, 12, 1) == (2027, 1)
        assert add_months(2026, 11, 3) == (2027, 2)

    def test_add_months_backwards(self) -> None:
        assert add_months(2026, 1, -1) == (2025, 12)
        assert add_months(2026, 3, -11) == (2025, 4)
