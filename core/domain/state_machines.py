"""
State Machines

청구서(Invoice), 반복 거래(RecurringTransaction) 정의, 부채(Debt)의 상태 전이 관리.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from core.errors import ValidationError
from core.types import DebtStatus, InvoiceStatus, RecurringState
from core.utils.timezone import BRT, clamp_day, local_date

logger = logging.getLogger(__name__)


class StateMachineError(ValidationError):
    """상태 전이 오류"""
    pass


# -------------------------------------------------------------------------
# Invoice
# -------------------------------------------------------------------------

# 전이 규칙:
# - OPEN → CLOSED: 마감일(due_date) 경과 (세션 시작 시 점검)
# - OPEN → PAID: 마감 전 결제
# - CLOSED → PAID: 결제
# - PAID: 종료 상태
INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.OPEN: frozenset({InvoiceStatus.CLOSED, InvoiceStatus.PAID}),
    InvoiceStatus.CLOSED: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}


def can_transition_invoice(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    """청구서 상태 전이 가능 여부"""
    return target in INVOICE_TRANSITIONS.get(current, frozenset())


def validate_invoice_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
    """청구서 상태 전이 검증

    Raises:
        StateMachineError: 허용되지 않는 전이
    """
    if not can_transition_invoice(current, target):
        raise StateMachineError(
            f"청구서 상태 전이 불가: {current.value} → {target.value}",
            user_message="이미 결제된 청구서입니다"
            if current == InvoiceStatus.PAID
            else None,
        )


def is_invoice_overdue(status: InvoiceStatus, due_date: date, today: date) -> bool:
    """마감 처리 대상 여부 (OPEN 이고 due_date < today)"""
    return status == InvoiceStatus.OPEN and due_date < today


# -------------------------------------------------------------------------
# RecurringTransaction
# -------------------------------------------------------------------------

def recurring_state(
    last_processed: datetime | None,
    today: date,
    tz: timezone = BRT,
) -> RecurringState:
    """반복 거래 정의의 현재 월 기준 상태

    전이 규칙:
    - NEVER_RUN → PROCESSED_THIS_MONTH: 첫 실체화
    - PROCESSED_THIS_MONTH → DUE_AGAIN: 다음 달 진입
    - DUE_AGAIN → PROCESSED_THIS_MONTH: 실체화
    """
    if last_processed is None:
        return RecurringState.NEVER_RUN

    processed_on = local_date(last_processed, tz)
    if (processed_on.year, processed_on.month) == (today.year, today.month):
        return RecurringState.PROCESSED_THIS_MONTH
    return RecurringState.DUE_AGAIN


def occurrence_date(day_of_month: int, today: date) -> date:
    """이번 달 실체화 날짜 (월 길이에 맞춰 보정)"""
    return clamp_day(today.year, today.month, day_of_month)


def is_recurring_due(
    day_of_month: int,
    last_processed: datetime | None,
    today: date,
    tz: timezone = BRT,
) -> bool:
    """이번 달 실체화 대상 여부

    보정된 실행일이 오늘 이하이고 이번 달에 아직 처리되지 않았을 때 True.
    """
    if occurrence_date(day_of_month, today) > today:
        return False
    return recurring_state(last_processed, today, tz) != RecurringState.PROCESSED_THIS_MONTH


# -------------------------------------------------------------------------
# Debt
# -------------------------------------------------------------------------

# 전이 규칙:
# - ACTIVE → PAID: 마지막 할부 상환 또는 상환액이 총액에 도달
# - PAID: 종료 상태
DEBT_TRANSITIONS: dict[DebtStatus, frozenset[DebtStatus]] = {
    DebtStatus.ACTIVE: frozenset({DebtStatus.PAID}),
    DebtStatus.PAID: frozenset(),
}


def validate_debt_payable(status: DebtStatus) -> None:
    """상환 가능 여부 검증 (ACTIVE 만 상환 가능)

    Raises:
        StateMachineError: 이미 상환이 끝난 부채
    """
    if DebtStatus.PAID not in DEBT_TRANSITIONS.get(status, frozenset()):
        raise StateMachineError(
            f"부채 상환 불가: {status.value}",
            user_message="이미 상환이 끝난 부채입니다",
        )


def is_debt_settled(
    installments_paid: int,
    total_installments: int,
    amount_paid: Decimal,
    total_amount: Decimal,
) -> bool:
    """상환 완료 여부 (횟수 또는 금액 중 하나라도 도달하면 완료)"""
    return installments_paid >= total_installments or amount_paid >= total_amount
