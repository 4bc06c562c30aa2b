"""
core/types.py 테스트

모든 Enum이 문자열 직렬화 가능한지 확인
"""

from core.types import (
    AccountStatus,
    AccountType,
    InvoiceItemKind,
    InvoiceStatus,
    MovementKind,
    OwnershipType,
    PaymentMethod,
    RecurringState,
    RunMode,
    TransactionKind,
)


class TestRunMode:
    """RunMode 테스트"""

    def test_values(self) -> None:
        assert RunMode.PRODUCTION.value == "production"
        assert RunMode.SANDBOX.value == "sandbox"

    def test_from_string(self) -> None:
        assert RunMode("sandbox") is RunMode.SANDBOX


class TestTransactionKind:
    def test_values(self) -> None:
        assert [k.value for k in TransactionKind] == ["revenue", "expense", "transfer"]

    def test_str_comparison(self) -> None:
        """str 상속으로 문자열과 직접 비교 가능"""
        assert TransactionKind.EXPENSE == "expense"


class TestLedgerEnums:
    def test_account_enums(self) -> None:
        assert AccountType.INVESTMENT.value == "investment"
        assert AccountStatus.ARCHIVED.value == "archived"

    def test_invoice_enums(self) -> None:
        assert [s.value for s in InvoiceStatus] == ["open", "closed", "paid"]
        assert InvoiceItemKind.ADVANCE_PAYMENT.value == "advance_payment"

    def test_payment_method(self) -> None:
        assert PaymentMethod.CREDIT_CARD.value == "credit_card"
        assert PaymentMethod("pix") is PaymentMethod.PIX

    def test_investment_enums(self) -> None:
        assert OwnershipType.THIRD_PARTY.value == "third_party"
        assert [k.value for k in MovementKind] == ["buy", "sell", "dividend"]

    def test_recurring_state(self) -> None:
        assert RecurringState.DUE_AGAIN.value == "due_again"
