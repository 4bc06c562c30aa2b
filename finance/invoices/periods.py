"""
청구 기간 계산 (순수 함수)

구매일의 일자가 카드 마감일보다 크면 다음 달 청구서, 아니면 같은 달 청구서.
"""

from dataclasses import dataclass
from datetime import date

from core.utils.timezone import add_months, clamp_day


@dataclass(frozen=True, order=True)
class InvoicePeriod:
    """청구 기간 (year, month)"""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"잘못된 월입니다: {self.month}")

    def shift(self, months: int) -> "InvoicePeriod":
        """months 개월 뒤의 기간"""
        year, month = add_months(self.year, self.month, months)
        return InvoicePeriod(year, month)

    def label(self) -> str:
        """MM/YYYY 표기"""
        return f"{self.month:02d}/{self.year}"


def resolve_period(purchase_date: date, closing_day: int) -> InvoicePeriod:
    """구매일 → 청구 기간

    Args:
        purchase_date: 구매일
        closing_day: 카드 마감일 (1~31)

    Returns:
        InvoicePeriod

    Example:
        >>> resolve_period(date(2026, 3, 15), 10)
        InvoicePeriod(year=2026, month=4)
        >>> resolve_period(date(2026, 3, 5), 10)
        InvoicePeriod(year=2026, month=3)
    """
    if not 1 <= closing_day <= 31:
        raise ValueError(f"잘못된 마감일입니다: {closing_day}")

    period = InvoicePeriod(purchase_date.year, purchase_date.month)
    if purchase_date.day > closing_day:
        return period.shift(1)
    return period


def due_date_for(period: InvoicePeriod, due_day: int) -> date:
    """청구 기간의 납부일 (월 길이에 맞춰 보정)

    Example:
        >>> due_date_for(InvoicePeriod(2026, 2), 30)
        datetime.date(2026, 2, 28)
    """
    return clamp_day(period.year, period.month, due_day)
