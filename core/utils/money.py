"""
금액 유틸리티

금액은 항상 Decimal. float 변환 금지.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from core.constants import Defaults

CENT = Decimal(Defaults.MONEY_QUANTUM)


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Decimal 변환 (float 입력은 거부)"""
    if isinstance(value, float):
        raise TypeError("금액에 float를 사용할 수 없습니다")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    """센트 단위 반올림 (ROUND_HALF_UP)"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def split_installments(total: Decimal, count: int) -> list[Decimal]:
    """할부 금액 분할

    각 회차는 센트 단위로 내림하고, 반올림 잔여분은 마지막 회차에 더한다.
    결과의 합은 항상 total과 정확히 같다.

    Args:
        total: 전체 금액 (> 0)
        count: 할부 횟수 (≥ 2)

    Returns:
        회차별 금액 목록

    Raises:
        ValueError: count < 2 또는 total ≤ 0

    Example:
        >>> split_installments(Decimal("100"), 3)
        [Decimal('33.33'), Decimal('33.33'), Decimal('33.34')]
    """
    if count < 2:
        raise ValueError(f"할부 횟수는 2 이상이어야 합니다: {count}")
    if total <= 0:
        raise ValueError(f"할부 금액은 0보다 커야 합니다: {total}")

    base = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    if base <= 0:
        raise ValueError(f"회차 금액이 0이 됩니다: {total} / {count}")

    parts = [base] * (count - 1)
    parts.append(total - base * (count - 1))
    return parts
