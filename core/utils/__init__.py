"""
유틸리티 패키지

결정적 ID 생성, 금액 처리, 타임존/달력 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    BRT,
    to_local,
    local_date,
    now_utc,
    today_local,
    last_day_of_month,
    clamp_day,
    add_months,
)

__all__ = [
    "BRT",
    "to_local",
    "local_date",
    "now_utc",
    "today_local",
    "last_day_of_month",
    "clamp_day",
    "add_months",
]
