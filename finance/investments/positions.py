"""
포지션 계산 (순수 함수)

가중 평균 단가:
- 매수: qty += m.qty, invested += m.qty × m.price, avg = invested / qty
- 매도: m.qty > qty 면 거부, qty -= m.qty, invested -= m.qty × avg, avg 유지
        qty 가 0이 되면 invested, avg 모두 0
- 배당: 포지션 변화 없음

증분 적용과 전체 재계산(replay)은 같은 apply_movement 를 사용한다.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from core.domain.models import Asset, Movement
from core.errors import ValidationError
from core.types import MovementKind

ZERO = Decimal("0")


@dataclass(frozen=True)
class Position:
    """자산 보유 상태 (Asset 의 materialized view 필드)"""

    quantity: Decimal = ZERO
    average_price: Decimal = ZERO
    total_invested: Decimal = ZERO

    @classmethod
    def from_asset(cls, asset: Asset) -> "Position":
        return cls(asset.quantity, asset.average_price, asset.total_invested)

    @property
    def is_flat(self) -> bool:
        return self.quantity == 0

    def as_fields(self) -> dict[str, Decimal]:
        """Asset 갱신용 필드"""
        return {
            "quantity": self.quantity,
            "average_price": self.average_price,
            "total_invested": self.total_invested,
        }


FLAT = Position()


def apply_movement(
    position: Position,
    kind: MovementKind,
    quantity: Decimal,
    price: Decimal,
) -> Position:
    """이동 1건 적용

    Raises:
        ValidationError: 보유 수량 초과 매도, 수량 ≤ 0
    """
    if kind == MovementKind.DIVIDEND:
        return position

    if quantity <= 0:
        raise ValidationError(f"수량은 0보다 커야 합니다: {quantity}")

    if kind == MovementKind.BUY:
        new_quantity = position.quantity + quantity
        new_invested = position.total_invested + quantity * price
        return Position(new_quantity, new_invested / new_quantity, new_invested)

    if kind == MovementKind.SELL:
        if quantity > position.quantity:
            raise ValidationError(
                f"보유 수량 초과 매도: {quantity} > {position.quantity}",
                user_message="보유 수량보다 많이 매도할 수 없습니다",
            )
        new_quantity = position.quantity - quantity
        if new_quantity == 0:
            return FLAT
        new_invested = position.total_invested - quantity * position.average_price
        return Position(new_quantity, position.average_price, new_invested)

    raise ValidationError(f"알 수 없는 이동 종류: {kind}")


def order_movements(movements: Iterable[Movement]) -> list[Movement]:
    """재계산 순서: 날짜 오름차순, 같은 날짜는 입력(삽입) 순서 유지

    입력은 삽입 순번(seq) 순이어야 한다. sorted 는 안정 정렬이다.
    """
    return sorted(movements, key=lambda m: m.date)


def replay(movements: Iterable[Movement]) -> Position:
    """이동 로그 전체 재계산

    Args:
        movements: 삽입 순서의 이동 목록

    Raises:
        ValidationError: 재계산 중 보유 수량 초과 매도 발생
    """
    position = FLAT
    for movement in order_movements(movements):
        position = apply_movement(position, movement.kind, movement.quantity, movement.price_per_unit)
    return position


def held_quantity(movements: Iterable[Movement], as_of: date) -> Decimal:
    """as_of 일자(포함)까지의 보유 수량 (매수 +, 매도 -)"""
    quantity = ZERO
    for movement in movements:
        if movement.date > as_of:
            continue
        if movement.kind == MovementKind.BUY:
            quantity += movement.quantity
        elif movement.kind == MovementKind.SELL:
            quantity -= movement.quantity
    return quantity
