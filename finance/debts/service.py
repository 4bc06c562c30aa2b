"""
부채 (할부 상환)

상환 1회 = 하나의 트랜잭션:
- 계좌 자동 이체 부채: 지출 거래 생성 + 계좌 잔액 감소
- 상환액/상환 횟수 증가, 완료 조건에 도달하면 PAID

마지막 상환은 남은 금액만큼만 기록한다 (상환액이 총액을 넘지 않음).
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from adapters.models import where
from core.constants import Collections, Defaults
from core.domain.models import Debt, Transaction
from core.domain.state_machines import is_debt_settled, validate_debt_payable
from core.errors import ValidationError
from core.session import Session
from core.types import DebtPaymentMethod, DebtStatus, PaymentMethod, TransactionKind
from core.utils.money import quantize_money
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity, require_positive
from finance.ledger.transactions import TransactionDraft, book_transaction, require_account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebtDraft:
    """부채 등록 입력"""

    description: str
    category: str
    total_amount: Decimal
    installment_amount: Decimal
    total_installments: int
    start_date: date
    contract_date: date | None = None
    interest_rate: Decimal = Decimal("0")
    payment_method: DebtPaymentMethod = DebtPaymentMethod.ACCOUNT_DEBIT


@dataclass(frozen=True)
class DebtPayment:
    """상환 결과"""

    debt: Debt
    amount: Decimal
    transaction: Transaction | None


class DebtService(StoreBackedService):
    """부채 서비스

    사용 예시:
    ```python
    debts = DebtService(store)
    debt = await debts.add_debt(session, DebtDraft(
        description="Empréstimo", category="Moradia",
        total_amount=Decimal("1200"), installment_amount=Decimal("100"),
        total_installments=12, start_date=date(2026, 1, 10),
    ))
    await debts.pay_installment(session, debt.id, account_id, date(2026, 2, 10))
    ```
    """

    async def add_debt(self, session: Session, draft: DebtDraft) -> Debt:
        """부채 등록 (상환액 0, 상환 횟수 0, ACTIVE)"""
        debt = build_entity(
            Debt,
            owner_id=session.user_id,
            description=(draft.description or "").strip(),
            category=(draft.category or "").strip(),
            total_amount=quantize_money(require_positive(draft.total_amount, "부채 총액")),
            installment_amount=quantize_money(require_positive(draft.installment_amount, "할부 금액")),
            total_installments=draft.total_installments,
            interest_rate=draft.interest_rate or Decimal("0"),
            start_date=draft.start_date,
            contract_date=draft.contract_date,
            payment_method=draft.payment_method,
            created_at=now_utc(),
        )
        debt.id = await self._store(session).create(Collections.DEBTS, debt.to_document())

        logger.info(f"부채 등록: {debt.description} {debt.total_amount} ({debt.total_installments}회)")
        return debt

    async def get_debt(self, session: Session, debt_id: str) -> Debt:
        return await fetch_entity(self._store(session), Collections.DEBTS, Debt, debt_id, "부채")

    async def list_debts(self, session: Session, status: DebtStatus | None = None) -> list[Debt]:
        """부채 목록 (진행 중 먼저, 같은 상태는 최근 등록 순)"""
        filters = [where("status", "==", status)] if status is not None else []
        docs = await self._store(session).query(Collections.DEBTS, filters)
        debts = [Debt.from_document(d.doc_id, d.data) for d in docs]
        debts.reverse()
        debts.sort(key=lambda d: d.status != DebtStatus.ACTIVE)
        return debts

    async def outstanding_balance(self, session: Session) -> Decimal:
        """진행 중인 부채의 남은 금액 합계"""
        active = await self.list_debts(session, DebtStatus.ACTIVE)
        return sum((d.remaining_amount for d in active), Decimal("0"))

    async def pay_installment(
        self,
        session: Session,
        debt_id: str,
        account_id: str | None,
        payment_date: date,
    ) -> DebtPayment:
        """할부 1회 상환

        부채는 트랜잭션 안에서 다시 읽으므로 동시 상환과 경합하면 ConsistencyError.

        Raises:
            ValidationError: 계좌 자동 이체 부채에 계좌 미지정, 보관 계좌
            StateMachineError: 이미 상환이 끝난 부채
            NotFoundError: 부채 또는 계좌 없음
        """
        store = self._store(session)
        snapshot = await fetch_entity(store, Collections.DEBTS, Debt, debt_id, "부채")
        books_cash = snapshot.payment_method == DebtPaymentMethod.ACCOUNT_DEBIT
        if books_cash:
            if not account_id:
                raise ValidationError(
                    f"계좌 자동 이체 부채에는 상환 계좌가 필요합니다: {debt_id}",
                    user_message="상환할 계좌를 선택하세요",
                )
            await require_account(store, account_id)

        transaction: Transaction | None = None
        async with store.transaction() as tx:
            debt = await fetch_entity(tx, Collections.DEBTS, Debt, debt_id, "부채")
            validate_debt_payable(debt.status)

            amount = min(debt.installment_amount, debt.remaining_amount)
            amount_paid = debt.amount_paid + amount
            installments_paid = debt.installments_paid + 1
            fields = {"amount_paid": amount_paid, "installments_paid": installments_paid}
            if is_debt_settled(installments_paid, debt.total_installments, amount_paid, debt.total_amount):
                fields["status"] = DebtStatus.PAID

            if books_cash:
                transaction = book_transaction(tx, session, TransactionDraft(
                    amount=amount,
                    date=payment_date,
                    kind=TransactionKind.EXPENSE,
                    category=debt.category,
                    account_id=account_id,
                    description=f"{Defaults.DEBT_PAYMENT_LABEL} - {debt.description}",
                    payment_method=PaymentMethod.DEBIT,
                    debt_id=debt_id,
                ))
            tx.update(Collections.DEBTS, debt_id, fields)

        paid = debt.model_copy(update=fields)
        logger.info(
            f"부채 상환: {debt.description} {amount} "
            f"({installments_paid}/{debt.total_installments}, {paid.status.value})",
            extra={"owner_id": session.user_id, "entity_id": debt_id},
        )
        return DebtPayment(debt=paid, amount=amount, transaction=transaction)

    async def delete_debt(self, session: Session, debt_id: str) -> None:
        """부채 삭제 (상환 기록이 없을 때만)

        Raises:
            ValidationError: 이미 상환 기록이 있음
        """
        store = self._store(session)
        async with store.transaction() as tx:
            debt = await fetch_entity(tx, Collections.DEBTS, Debt, debt_id, "부채")
            if debt.installments_paid > 0:
                raise ValidationError(
                    f"상환 기록이 있는 부채: {debt_id}",
                    user_message="상환 기록이 있는 부채는 삭제할 수 없습니다",
                )
            tx.delete(Collections.DEBTS, debt_id)

        logger.info(f"부채 삭제: {debt.description}")
