"""
Drift Detector

저장된 집계 값과 원본 기록으로 다시 계산한 값을 비교하여 불일치 감지
- 계좌 잔액 vs 거래
- 청구서 합계 vs 항목
- 자산 포지션 vs 이동 로그 재계산
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from core.domain.models import Account, Asset, Invoice, InvoiceItem, Movement, Transaction
from core.errors import ValidationError
from core.types import TransactionKind
from finance.investments.positions import Position, replay
from finance.ledger.transactions import transaction_deltas


@dataclass
class DriftInfo:
    """Drift 정보"""
    drift_kind: str  # account, invoice, asset
    entity_id: str
    expected: dict[str, Any]
    actual: dict[str, Any]
    description: str


def expected_balances(accounts: Iterable[Account], transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """거래로 다시 계산한 계좌별 잔액"""
    balances = {a.id: a.initial_balance for a in accounts}
    for tx in transactions:
        if tx.kind != TransactionKind.TRANSFER and not tx.account_id:
            continue
        for account_id, delta in transaction_deltas(tx):
            if account_id in balances:
                balances[account_id] += delta
    return balances


class DriftDetector:
    """Drift 감지기

    금액은 정확히 비교하고, 수량/평균가는 나눗셈 정밀도 차이만 허용한다.
    """

    # 평균가 비교 허용 오차 (Decimal 나눗셈 정밀도)
    QTY_TOLERANCE = Decimal("0.00000001")

    def detect_account_drift(
        self,
        accounts: list[Account],
        transactions: list[Transaction],
    ) -> list[DriftInfo]:
        """계좌 잔액 drift 감지"""
        expected = expected_balances(accounts, transactions)
        drifts: list[DriftInfo] = []
        for account in accounts:
            want = expected[account.id]
            if account.current_balance != want:
                drifts.append(DriftInfo(
                    drift_kind="account",
                    entity_id=account.id,
                    expected={"current_balance": str(want)},
                    actual={"current_balance": str(account.current_balance)},
                    description=f"Balance mismatch for {account.name}: "
                                f"expected {want}, actual {account.current_balance}",
                ))
        return drifts

    def detect_invoice_drift(
        self,
        invoices: list[Invoice],
        items: list[InvoiceItem],
    ) -> list[DriftInfo]:
        """청구서 합계 drift 감지"""
        totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for item in items:
            totals[item.invoice_id] += item.amount

        drifts: list[DriftInfo] = []
        for invoice in invoices:
            want = totals[invoice.id]
            if invoice.total_amount != want:
                drifts.append(DriftInfo(
                    drift_kind="invoice",
                    entity_id=invoice.id,
                    expected={"total_amount": str(want)},
                    actual={"total_amount": str(invoice.total_amount)},
                    description=f"Invoice total mismatch {invoice.month:02d}/{invoice.year}: "
                                f"expected {want}, actual {invoice.total_amount}",
                ))
        return drifts

    def detect_asset_drift(self, asset: Asset, movements: list[Movement]) -> DriftInfo | None:
        """자산 포지션 drift 감지

        Args:
            asset: 저장된 자산
            movements: 자산의 이동 (삽입 순서)
        """
        actual = Position.from_asset(asset)
        try:
            want = replay(movements)
        except ValidationError as e:
            return DriftInfo(
                drift_kind="asset",
                entity_id=asset.id,
                expected={},
                actual=self._position_dict(actual),
                description=f"Movement log of {asset.ticker} cannot be replayed: {e}",
            )

        if (
            actual.quantity != want.quantity
            or abs(actual.average_price - want.average_price) > self.QTY_TOLERANCE
            or abs(actual.total_invested - want.total_invested) > self.QTY_TOLERANCE
        ):
            return DriftInfo(
                drift_kind="asset",
                entity_id=asset.id,
                expected=self._position_dict(want),
                actual=self._position_dict(actual),
                description=f"Position mismatch for {asset.ticker}: "
                            f"expected qty={want.quantity}, actual qty={actual.quantity}",
            )
        return None

    @staticmethod
    def _position_dict(position: Position) -> dict[str, str]:
        return {k: str(v) for k, v in position.as_fields().items()}
