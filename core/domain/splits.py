"""
거래 분할 (Split)

하나의 거래 금액을 여러 카테고리로 나눈다. 분할 합계는 거래 금액과 정확히 같아야 한다.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from core.domain.models import Split, Transaction
from core.errors import ValidationError


@dataclass(frozen=True)
class CategoryAmount:
    """카테고리별 금액 (분할 전개 결과)"""

    transaction_id: str | None
    category: str
    amount: Decimal
    is_split: bool


def normalize_splits(splits: Iterable[Split | dict[str, Any]]) -> list[Split]:
    """dict/Split 혼합 입력을 Split 목록으로 변환

    Raises:
        ValidationError: 카테고리 누락, 숫자가 아닌 금액 또는 금액 ≤ 0
    """
    result: list[Split] = []
    for raw in splits:
        if isinstance(raw, Split):
            result.append(raw)
            continue
        category = (raw.get("category") or "").strip()
        if not category:
            raise ValidationError("분할 항목에 카테고리가 없습니다")
        try:
            amount = Decimal(str(raw.get("amount")))
            if not amount.is_finite():
                raise ArithmeticError(amount)
        except ArithmeticError as e:
            raise ValidationError(f"분할 금액 형식 오류: {raw.get('amount')}") from e
        result.append(_make_split(category, amount))
    return result


def _make_split(category: str, amount: Decimal) -> Split:
    if amount <= 0:
        raise ValidationError(f"분할 금액은 0보다 커야 합니다: {category}={amount}")
    return Split(category=category, amount=amount)


def validate_splits(amount: Decimal, splits: Iterable[Split | dict[str, Any]]) -> list[Split]:
    """분할 검증

    Args:
        amount: 거래 금액
        splits: 분할 항목 (빈 목록이면 분할 없음)

    Returns:
        검증된 Split 목록

    Raises:
        ValidationError: 항목 오류 또는 합계 불일치

    Example:
        >>> validate_splits(Decimal("90"), [{"category": "A", "amount": "30"}] * 3)
        [Split(category='A', amount=Decimal('30')), ...]
    """
    normalized = normalize_splits(splits)
    if not normalized:
        return normalized

    total = sum((s.amount for s in normalized), Decimal("0"))
    if total != amount:
        raise ValidationError(
            f"분할 합계 불일치: splits={total}, amount={amount}",
            user_message="분할 금액의 합이 거래 금액과 같아야 합니다",
        )
    return normalized


def expand_splits(transactions: Iterable[Transaction]) -> list[CategoryAmount]:
    """거래를 카테고리별 금액으로 전개 (보고서/예산용)

    분할이 없는 거래는 자신의 카테고리로 한 줄을 만든다.
    """
    rows: list[CategoryAmount] = []
    for tx in transactions:
        if tx.splits:
            for split in tx.splits:
                rows.append(CategoryAmount(tx.id, split.category, split.amount, True))
        else:
            rows.append(CategoryAmount(tx.id, tx.category, tx.amount, False))
    return rows


def totals_by_category(rows: Iterable[CategoryAmount]) -> dict[str, Decimal]:
    """카테고리별 합계"""
    totals: dict[str, Decimal] = {}
    for row in rows:
        totals[row.category] = totals.get(row.category, Decimal("0")) + row.amount
    return totals
