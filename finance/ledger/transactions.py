"""
원장 코어 - 거래

계좌 잔액 불변식:
    current_balance == initial_balance + Σ(계좌를 참조하는 커밋된 거래의 부호 금액)

모든 잔액 변경은 balance_delta → apply_balance_delta 를 거친다.
금액이 미리 정해진 변경은 원자적 증감(blind increment)으로,
이전 값에 의존하는 변경(수정/삭제)은 원본을 읽는 같은 트랜잭션 안에서 처리한다.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from adapters.interfaces import IStoreTransaction
from adapters.models import OrderBy, where
from core.constants import Collections
from core.domain.models import Account, Split, Transaction
from core.domain.splits import validate_splits
from core.errors import ValidationError
from core.session import Session
from core.types import PaymentMethod, TransactionKind
from core.utils.timezone import now_utc
from finance.base import (
    DocumentReader,
    StoreBackedService,
    build_entity,
    fetch_entity,
    require_positive,
    revalidate,
)

logger = logging.getLogger(__name__)

# 수정 가능한 필드 (잔액 관련 필드 포함, 소유자/연결 필드 제외)
UPDATABLE_FIELDS = frozenset({
    "description",
    "amount",
    "date",
    "kind",
    "category",
    "subcategory",
    "payment_method",
    "account_id",
    "tags",
    "splits",
})


# -------------------------------------------------------------------------
# 잔액 변경 단일 진입점
# -------------------------------------------------------------------------

def balance_delta(kind: TransactionKind, amount: Decimal) -> Decimal:
    """거래 종류별 부호 금액

    REVENUE: +amount, EXPENSE: -amount

    Raises:
        ValidationError: TRANSFER (계좌별 부호가 달라 transaction_deltas 사용)
    """
    if kind == TransactionKind.REVENUE:
        return amount
    if kind == TransactionKind.EXPENSE:
        return -amount
    raise ValidationError(f"단일 계좌 부호 금액을 계산할 수 없는 종류: {kind.value}")


def transaction_deltas(tx: Transaction) -> list[tuple[str, Decimal]]:
    """거래가 계좌에 미친 (account_id, 부호 금액) 목록

    Raises:
        ValidationError: 계좌 참조 없음
    """
    if tx.kind == TransactionKind.TRANSFER:
        return [
            (tx.from_account_id, -tx.amount),
            (tx.to_account_id, tx.amount),
        ]
    if not tx.account_id:
        raise ValidationError(
            f"계좌 참조가 없는 거래: {tx.id}",
            user_message="계좌가 연결되지 않은 거래는 여기서 처리할 수 없습니다",
        )
    return [(tx.account_id, balance_delta(tx.kind, tx.amount))]


def apply_balance_delta(tx: IStoreTransaction, account_id: str, delta: Decimal) -> None:
    """계좌 잔액 원자적 증감 (트랜잭션 버퍼에 추가)"""
    if delta == 0:
        return
    tx.increment(Collections.ACCOUNTS, account_id, "current_balance", delta)


def reverse_deltas(tx: IStoreTransaction, original: Transaction) -> None:
    """거래의 잔액 효과를 되돌린다"""
    for account_id, delta in transaction_deltas(original):
        apply_balance_delta(tx, account_id, -delta)


def reapply_deltas(tx: IStoreTransaction, entity: Transaction) -> None:
    """거래의 잔액 효과를 적용한다"""
    for account_id, delta in transaction_deltas(entity):
        apply_balance_delta(tx, account_id, delta)


async def require_account(
    reader: DocumentReader,
    account_id: str | None,
    allow_archived: bool = False,
) -> Account:
    """거래 대상 계좌 확인

    Raises:
        ValidationError: 계좌 미지정 또는 보관(archived) 계좌
        NotFoundError: 계좌 없음
    """
    if not account_id:
        raise ValidationError("계좌를 지정해야 합니다", user_message="계좌를 선택하세요")
    account = await fetch_entity(reader, Collections.ACCOUNTS, Account, account_id, "계좌")
    if not allow_archived and not account.is_active:
        raise ValidationError(
            f"보관된 계좌에는 거래를 추가할 수 없습니다: {account_id}",
            user_message="보관된 계좌입니다",
        )
    return account


# -------------------------------------------------------------------------
# 거래 초안
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class TransactionDraft:
    """수입/지출 거래 입력

    Attributes:
        amount: 금액 (> 0)
        date: 거래일
        kind: REVENUE / EXPENSE
        category: 카테고리 (필수)
        account_id: 대상 계좌 (필수)
        splits: 카테고리 분할 (합계 == amount)
        recurring_id / invoice_id / movement_id / debt_id: 출처 연결
    """

    amount: Decimal
    date: date
    kind: TransactionKind
    category: str
    account_id: str
    description: str = ""
    subcategory: str | None = None
    payment_method: PaymentMethod | None = None
    tags: tuple[str, ...] = ()
    splits: tuple[Split | dict[str, Any], ...] = ()
    recurring_id: str | None = None
    invoice_id: str | None = None
    movement_id: str | None = None
    debt_id: str | None = None


def validate_draft(draft: TransactionDraft) -> tuple[Decimal, list[Split]]:
    """쓰기 전 입력 검증

    Returns:
        (금액, 검증된 분할)
    """
    amount = require_positive(draft.amount)
    if draft.kind not in (TransactionKind.REVENUE, TransactionKind.EXPENSE):
        raise ValidationError("이체는 transfer_funds 로 처리해야 합니다")
    if not draft.category or not draft.category.strip():
        raise ValidationError("카테고리가 필요합니다", user_message="카테고리를 선택하세요")
    if not draft.account_id:
        raise ValidationError("계좌가 필요합니다", user_message="계좌를 선택하세요")
    if draft.payment_method == PaymentMethod.CREDIT_CARD:
        raise ValidationError(
            "카드 결제는 청구서에 추가해야 합니다",
            user_message="신용카드 결제는 카드 청구서로 등록하세요",
        )
    splits = validate_splits(amount, draft.splits)
    return amount, splits


def book_transaction(
    tx: IStoreTransaction,
    session: Session,
    draft: TransactionDraft,
) -> Transaction:
    """거래 문서 생성 + 잔액 증감 (호출자의 트랜잭션 안에서)

    계좌 존재/상태 확인은 호출자가 먼저 수행한다.
    """
    amount, splits = validate_draft(draft)
    entity = build_entity(
        Transaction,
        owner_id=session.user_id,
        description=draft.description,
        amount=amount,
        date=draft.date,
        kind=draft.kind,
        category=draft.category.strip(),
        subcategory=draft.subcategory,
        payment_method=draft.payment_method,
        account_id=draft.account_id,
        tags=list(draft.tags),
        splits=splits,
        recurring_id=draft.recurring_id,
        invoice_id=draft.invoice_id,
        movement_id=draft.movement_id,
        debt_id=draft.debt_id,
        created_at=now_utc(),
    )
    entity.id = tx.create(Collections.TRANSACTIONS, entity.to_document())
    apply_balance_delta(tx, draft.account_id, balance_delta(draft.kind, amount))
    return entity


def unbook_transaction(tx: IStoreTransaction, original: Transaction) -> None:
    """거래 삭제 + 잔액 되돌림 (호출자의 트랜잭션 안에서)"""
    reverse_deltas(tx, original)
    tx.delete(Collections.TRANSACTIONS, original.id)


# -------------------------------------------------------------------------
# 서비스
# -------------------------------------------------------------------------

class LedgerService(StoreBackedService):
    """거래 원장 서비스

    사용 예시:
    ```python
    ledger = LedgerService(store)
    tx = await ledger.apply_transaction(session, TransactionDraft(
        amount=Decimal("50"), date=date(2026, 3, 1),
        kind=TransactionKind.EXPENSE, category="Lazer", account_id=acc_id,
    ))
    await ledger.update_transaction(session, tx.id, {"amount": Decimal("70")})
    await ledger.delete_transaction(session, tx.id)
    ```
    """

    async def apply_transaction(self, session: Session, draft: TransactionDraft) -> Transaction:
        """거래 기록 + 계좌 잔액 증감 (하나의 원자적 쓰기)

        Raises:
            ValidationError: 금액 ≤ 0, 카테고리/계좌 누락, 분할 합계 불일치, 보관 계좌
            NotFoundError: 계좌 없음
        """
        validate_draft(draft)
        store = self._store(session)
        await require_account(store, draft.account_id)

        async with store.transaction() as tx:
            entity = book_transaction(tx, session, draft)

        logger.info(
            f"거래 기록: {entity.kind.value} {entity.amount} → account={entity.account_id}",
            extra={"transaction_id": entity.id, "owner_id": session.user_id},
        )
        return entity

    async def update_transaction(
        self,
        session: Session,
        transaction_id: str,
        changes: Mapping[str, Any],
    ) -> Transaction:
        """거래 수정 (원본 역적용 → 새 값 적용 → 문서 재작성, 하나의 트랜잭션)

        원본은 트랜잭션 안에서 읽으므로 동시 수정과 경합하면 ConsistencyError.

        Raises:
            ValidationError: 허용되지 않는 필드, 이체/투자/부채 연결 거래
            NotFoundError: 거래 없음
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"수정할 수 없는 필드: {sorted(unknown)}")
        if "amount" in changes:
            require_positive(changes["amount"])

        store = self._store(session)

        # 새 대상 계좌 검증 (blind increment 대상이므로 트랜잭션 밖에서)
        if changes.get("account_id"):
            await require_account(store, changes["account_id"])

        async with store.transaction() as tx:
            original = await fetch_entity(
                tx, Collections.TRANSACTIONS, Transaction, transaction_id, "거래"
            )
            self._ensure_editable(original)

            updated = revalidate(original, **dict(changes))
            if updated.kind == TransactionKind.TRANSFER:
                raise ValidationError("거래 종류를 이체로 바꿀 수 없습니다")
            if updated.payment_method == PaymentMethod.CREDIT_CARD:
                raise ValidationError("카드 결제는 청구서에서 수정해야 합니다")
            validate_splits(updated.amount, updated.splits)

            reverse_deltas(tx, original)
            reapply_deltas(tx, updated)
            tx.set(Collections.TRANSACTIONS, transaction_id, updated.to_document())

        logger.info(
            f"거래 수정: {transaction_id} {original.amount} → {updated.amount}",
            extra={"transaction_id": transaction_id, "owner_id": session.user_id},
        )
        return updated

    async def delete_transaction(self, session: Session, transaction_id: str) -> None:
        """거래 삭제 + 잔액 되돌림 (하나의 트랜잭션)

        계좌 참조가 없는 거래는 거부한다.

        Raises:
            ValidationError: 계좌 참조 없음, 투자/부채 연결 거래
            NotFoundError: 거래 없음
        """
        store = self._store(session)
        async with store.transaction() as tx:
            original = await fetch_entity(
                tx, Collections.TRANSACTIONS, Transaction, transaction_id, "거래"
            )
            if original.movement_id:
                raise ValidationError(
                    f"투자 이동과 연결된 거래: {transaction_id}",
                    user_message="투자 거래는 투자 화면에서 삭제하세요",
                )
            if original.debt_id:
                raise ValidationError(
                    f"부채 상환과 연결된 거래: {transaction_id}",
                    user_message="부채 상환 거래는 삭제할 수 없습니다",
                )
            unbook_transaction(tx, original)

        logger.info(
            f"거래 삭제: {transaction_id} ({original.kind.value} {original.amount})",
            extra={"transaction_id": transaction_id, "owner_id": session.user_id},
        )

    async def reverse_transaction(self, session: Session, transaction: Transaction) -> None:
        """거래의 잔액 효과를 되돌리고 삭제 (delete_transaction 과 동일)"""
        if not transaction.id:
            raise ValidationError("저장되지 않은 거래입니다")
        await self.delete_transaction(session, transaction.id)

    @staticmethod
    def _ensure_editable(original: Transaction) -> None:
        if original.kind == TransactionKind.TRANSFER:
            raise ValidationError(
                "이체는 update_transfer 로 수정해야 합니다",
                user_message="이체는 이체 화면에서 수정하세요",
            )
        if original.movement_id:
            raise ValidationError(
                "투자 이동과 연결된 거래는 수정할 수 없습니다",
                user_message="투자 거래는 투자 화면에서 수정하세요",
            )
        if original.debt_id:
            raise ValidationError(
                "부채 상환과 연결된 거래는 수정할 수 없습니다",
                user_message="부채 상환 거래는 수정할 수 없습니다",
            )
        if not original.account_id:
            raise ValidationError("계좌 참조가 없는 거래는 수정할 수 없습니다")

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_transaction(self, session: Session, transaction_id: str) -> Transaction:
        return await fetch_entity(
            self._store(session), Collections.TRANSACTIONS, Transaction, transaction_id, "거래"
        )

    async def list_transactions(
        self,
        session: Session,
        start: date | None = None,
        end: date | None = None,
        account_id: str | None = None,
        kind: TransactionKind | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """거래 목록 (최신순)

        account_id 지정 시 이체의 출금/입금 계좌도 포함.
        """
        filters = []
        if start is not None:
            filters.append(where("date", ">=", start))
        if end is not None:
            filters.append(where("date", "<=", end))
        if kind is not None:
            filters.append(where("kind", "==", kind))

        docs = await self._store(session).query(
            Collections.TRANSACTIONS,
            filters,
            order_by=OrderBy("date", descending=True),
        )
        items = [Transaction.from_document(d.doc_id, d.data) for d in docs]
        if account_id is not None:
            items = [
                t for t in items
                if account_id in (t.account_id, t.from_account_id, t.to_account_id)
            ]
        return items[:limit] if limit is not None else items

    async def monthly_summary(self, session: Session, year: int, month: int) -> dict[str, Any]:
        """월별 요약 (수입/지출/잔액, 결제 수단별 지출)"""
        start = date(year, month, 1)
        end = date(year + (month == 12), month % 12 + 1, 1)
        items = await self.list_transactions(session, start=start)
        items = [t for t in items if t.date < end]

        revenue = sum_amounts(t for t in items if t.kind == TransactionKind.REVENUE)
        expense = sum_amounts(t for t in items if t.kind == TransactionKind.EXPENSE)

        by_method: dict[str, Decimal] = {}
        for t in items:
            if t.kind == TransactionKind.EXPENSE and t.payment_method is not None:
                key = t.payment_method.value
                by_method[key] = by_method.get(key, Decimal("0")) + t.amount

        return {
            "year": year,
            "month": month,
            "revenue": revenue,
            "expense": expense,
            "balance": revenue - expense,
            "expense_by_payment_method": by_method,
            "count": len(items),
        }


def sum_amounts(items: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in items), Decimal("0"))
