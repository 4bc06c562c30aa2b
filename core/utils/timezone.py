"""
타임존 유틸리티

내부 저장: UTC | 달력 판단(청구 기간, 반복 거래 기준일): BRT 원칙 준수를 위한 헬퍼 함수
"""

import calendar
from datetime import date, datetime, timezone, timedelta

from core.constants import Defaults

# BRT 타임존 (UTC-3)
BRT = timezone(timedelta(hours=Defaults.TIMEZONE_OFFSET_HOURS))


def to_local(dt: datetime, tz: timezone = BRT) -> datetime:
    """UTC datetime을 로컬(BRT)로 변환

    Args:
        dt: datetime 객체 (UTC 권장, naive면 UTC로 간주)
        tz: 대상 타임존 (기본 BRT)

    Returns:
        로컬 타임존의 datetime

    Example:
        >>> utc_dt = datetime(2026, 3, 1, 2, 0, 0, tzinfo=timezone.utc)
        >>> to_local(utc_dt).day
        28  # 전날 23:00 (2월)
    """
    if dt.tzinfo is None:
        # naive datetime은 UTC로 간주
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def local_date(dt: datetime, tz: timezone = BRT) -> date:
    """datetime의 로컬 달력 날짜"""
    return to_local(dt, tz).date()


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def today_local(tz: timezone = BRT) -> date:
    """현재 로컬 날짜"""
    return datetime.now(tz).date()


def last_day_of_month(year: int, month: int) -> int:
    """해당 월의 마지막 날짜 (28~31)"""
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """일자를 해당 월 길이에 맞춰 보정한 date 반환

    Example:
        >>> clamp_day(2026, 2, 31)
        datetime.date(2026, 2, 28)
    """
    return date(year, month, min(day, last_day_of_month(year, month)))


def add_months(year: int, month: int, months: int) -> tuple[int, int]:
    """(year, month)에 months개월을 더한 (year, month)

    Example:
        >>> add_months(2026, 12, 1)
        (2027, 1)
    """
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1
