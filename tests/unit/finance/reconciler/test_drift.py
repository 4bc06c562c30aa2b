"""
Drift Detector 테스트
"""

from datetime import date
from decimal import Decimal

from core.domain.models import Account, Asset, Invoice, InvoiceItem, Movement, Transaction
from core.types import InvoiceItemKind, MovementKind, TransactionKind
from finance.reconciler.drift import DriftDetector, expected_balances


def _account(account_id: str, initial: str, current: str) -> Account:
    return Account(
        id=account_id,
        owner_id="u1",
        name=account_id,
        initial_balance=Decimal(initial),
        current_balance=Decimal(current),
    )


def _tx(kind: TransactionKind, amount: str, **accounts: str) -> Transaction:
    return Transaction(
        owner_id="u1",
        amount=Decimal(amount),
        date=date(2026, 3, 1),
        kind=kind,
        category="" if kind == TransactionKind.TRANSFER else "Lazer",
        **accounts,
    )


class TestExpectedBalances:
    def test_revenue_expense_transfer(self) -> None:
        accounts = [_account("a", "1000", "0"), _account("b", "200", "0")]
        transactions = [
            _tx(TransactionKind.EXPENSE, "50", account_id="a"),
            _tx(TransactionKind.REVENUE, "10", account_id="b"),
            _tx(TransactionKind.TRANSFER, "400", from_account_id="a", to_account_id="b"),
        ]

        assert expected_balances(accounts, transactions) == {
            "a": Decimal("550"),
            "b": Decimal("610"),
        }

    def test_unknown_account_ignored(self) -> None:
        balances = expected_balances(
            [_account("a", "0", "0")],
            [_tx(TransactionKind.EXPENSE, "5", account_id="gone")],
        )

        assert balances == {"a": Decimal("0")}


class TestDetectAccountDrift:
    def test_no_drift(self) -> None:
        detector = DriftDetector()
        accounts = [_account("a", "100", "90")]

        assert detector.detect_account_drift(accounts, [_tx(TransactionKind.EXPENSE, "10", account_id="a")]) == []

    def test_drift(self) -> None:
        detector = DriftDetector()
        accounts = [_account("a", "100", "80")]

        drifts = detector.detect_account_drift(accounts, [_tx(TransactionKind.EXPENSE, "10", account_id="a")])

        assert len(drifts) == 1
        assert drifts[0].drift_kind == "account"
        assert drifts[0].expected == {"current_balance": "90"}
        assert drifts[0].actual == {"current_balance": "80"}


class TestDetectInvoiceDrift:
    def _invoice(self, total: str) -> Invoice:
        return Invoice(
            id="inv1",
            owner_id="u1",
            card_id="c1",
            month=4,
            year=2026,
            total_amount=Decimal(total),
            due_date=date(2026, 4, 20),
        )

    def _item(self, amount: str, kind: InvoiceItemKind = InvoiceItemKind.PURCHASE) -> InvoiceItem:
        return InvoiceItem(
            owner_id="u1",
            invoice_id="inv1",
            card_id="c1",
            kind=kind,
            amount=Decimal(amount),
            purchase_date=date(2026, 3, 15),
        )

    def test_advance_payment_counts_negative(self) -> None:
        detector = DriftDetector()
        items = [self._item("300"), self._item("-100", InvoiceItemKind.ADVANCE_PAYMENT)]

        assert detector.detect_invoice_drift([self._invoice("200")], items) == []

    def test_drift(self) -> None:
        detector = DriftDetector()

        drifts = detector.detect_invoice_drift([self._invoice("250")], [self._item("300")])

        assert [d.entity_id for d in drifts] == ["inv1"]


class TestDetectAssetDrift:
    def _asset(self, quantity: str, average: str, invested: str) -> Asset:
        return Asset(
            id="s1",
            owner_id="u1",
            portfolio_id="p1",
            ticker="PETR4",
            quantity=Decimal(quantity),
            average_price=Decimal(average),
            total_invested=Decimal(invested),
        )

    def _buy(self, quantity: str, price: str) -> Movement:
        return Movement(
            owner_id="u1",
            portfolio_id="p1",
            asset_id="s1",
            kind=MovementKind.BUY,
            quantity=Decimal(quantity),
            price_per_unit=Decimal(price),
            date=date(2026, 3, 1),
        )

    def test_consistent(self) -> None:
        detector = DriftDetector()

        assert detector.detect_asset_drift(self._asset("10", "20", "200"), [self._buy("10", "20")]) is None

    def test_quantity_drift(self) -> None:
        detector = DriftDetector()

        drift = detector.detect_asset_drift(self._asset("12", "20", "240"), [self._buy("10", "20")])

        assert drift is not None
        assert drift.expected["quantity"] == "10"

    def test_unreplayable_log(self) -> None:
        detector = DriftDetector()
        sell = self._buy("5", "20").model_copy(update={"kind": MovementKind.SELL})

        drift = detector.detect_asset_drift(self._asset("0", "0", "0"), [sell])

        assert drift is not None
        assert "cannot be replayed" in drift.description
