"""
core/domain/state_machines.py 테스트

청구서 상태 전이, 반복 거래 정의 상태, 부채 상환 완료 테스트
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from core.domain.state_machines import (
    StateMachineError,
    can_transition_invoice,
    is_debt_settled,
    is_invoice_overdue,
    is_recurring_due,
    occurrence_date,
    recurring_state,
    validate_debt_payable,
    validate_invoice_transition,
)
from core.errors import ValidationError
from core.types import DebtStatus, InvoiceStatus, RecurringState


class TestInvoiceTransitions:
    """청구서 상태 전이"""

    @pytest.mark.parametrize(
        "current,target",
        [
            (InvoiceStatus.OPEN, InvoiceStatus.CLOSED),
            (InvoiceStatus.OPEN, InvoiceStatus.PAID),
            (InvoiceStatus.CLOSED, InvoiceStatus.PAID),
        ],
    )
    def test_allowed(self, current: InvoiceStatus, target: InvoiceStatus) -> None:
        assert can_transition_invoice(current, target)
        validate_invoice_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (InvoiceStatus.PAID, InvoiceStatus.OPEN),
            (InvoiceStatus.PAID, InvoiceStatus.PAID),
            (InvoiceStatus.CLOSED, InvoiceStatus.OPEN),
        ],
    )
    def test_rejected(self, current: InvoiceStatus, target: InvoiceStatus) -> None:
        assert not can_transition_invoice(current, target)
        with pytest.raises(StateMachineError):
            validate_invoice_transition(current, target)

    def test_paid_is_validation_error(self) -> None:
        """결제 완료 청구서 재결제는 ValidationError 계열"""
        with pytest.raises(ValidationError) as exc_info:
            validate_invoice_transition(InvoiceStatus.PAID, InvoiceStatus.PAID)

        assert exc_info.value.user_message == "이미 결제된 청구서입니다"

    def test_overdue(self) -> None:
        today = date(2026, 4, 21)

        assert is_invoice_overdue(InvoiceStatus.OPEN, date(2026, 4, 20), today)
        assert not is_invoice_overdue(InvoiceStatus.OPEN, date(2026, 4, 21), today)
        assert not is_invoice_overdue(InvoiceStatus.PAID, date(2026, 4, 1), today)


class TestRecurringState:
    """반복 거래 정의 상태"""

    def test_never_run(self) -> None:
        assert recurring_state(None, date(2026, 3, 10)) == RecurringState.NEVER_RUN

    def test_processed_this_month(self) -> None:
        processed = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)

        assert recurring_state(processed, date(2026, 3, 20)) == RecurringState.PROCESSED_THIS_MONTH

    def test_due_again_next_month(self) -> None:
        processed = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)

        assert recurring_state(processed, date(2026, 4, 1)) == RecurringState.DUE_AGAIN

    def test_month_boundary_in_local_time(self) -> None:
        """UTC 4월 1일 01:00 은 BRT 3월 31일 처리로 본다"""
        processed = datetime(2026, 4, 1, 1, 0, tzinfo=timezone.utc)

        assert recurring_state(processed, date(2026, 4, 2)) == RecurringState.DUE_AGAIN


class TestRecurringDue:
    def test_occurrence_clamped(self) -> None:
        """31일 정의는 2월 28일에 실행"""
        assert occurrence_date(31, date(2026, 2, 10)) == date(2026, 2, 28)

    def test_not_yet_due(self) -> None:
        assert not is_recurring_due(15, None, date(2026, 3, 10))

    def test_due_on_day(self) -> None:
        assert is_recurring_due(10, None, date(2026, 3, 10))

    def test_clamped_day_is_due_at_month_end(self) -> None:
        assert is_recurring_due(31, None, date(2026, 2, 28))

    def test_already_processed(self) -> None:
        processed = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)

        assert not is_recurring_due(10, processed, date(2026, 3, 25))


class TestDebtSettlement:
    """부채 상환 완료"""

    @pytest.mark.parametrize(
        "installments_paid,amount_paid,expected",
        [
            (2, "200", False),
            (3, "300", True),
            (3, "250", True),
            (2, "300", True),
        ],
    )
    def test_settled_by_count_or_amount(self, installments_paid: int, amount_paid: str, expected: bool) -> None:
        assert is_debt_settled(installments_paid, 3, Decimal(amount_paid), Decimal("300")) is expected

    def test_paid_debt_not_payable(self) -> None:
        validate_debt_payable(DebtStatus.ACTIVE)

        with pytest.raises(StateMachineError) as exc_info:
            validate_debt_payable(DebtStatus.PAID)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.user_message == "이미 상환이 끝난 부채입니다"
