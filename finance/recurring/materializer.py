"""
반복 거래 실체화 (Recurring Materializer)

정의마다 달력 월 당 최대 1건의 실제 거래(또는 카드 청구서 항목)를 만든다.

상태 전이 (정의별, 현재 월 기준):
    NEVER_RUN → PROCESSED_THIS_MONTH → (다음 달) DUE_AGAIN → PROCESSED_THIS_MONTH

실체화와 last_processed 기록은 정의를 다시 읽는 같은 트랜잭션 안에서 커밋되므로
중간에 중단되거나 두 세션이 동시에 실행해도 중복 생성되지 않는다.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from adapters.interfaces import IDocumentStore
from adapters.models import OrderBy
from core.constants import Collections
from core.domain.models import CreditCard, RecurringTransaction
from core.domain.state_machines import is_recurring_due, occurrence_date, recurring_state
from core.errors import LedgerError, ValidationError
from core.session import Session
from core.types import InvoiceItemKind, PaymentMethod, RecurringState, TransactionKind
from core.utils.timezone import BRT, local_date, now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity, require_positive, revalidate
from finance.invoices.periods import resolve_period
from finance.invoices.service import append_item, ensure_invoice
from finance.ledger.transactions import TransactionDraft, book_transaction, require_account

logger = logging.getLogger(__name__)

RECURRING_UPDATABLE_FIELDS = frozenset({
    "description",
    "amount",
    "day_of_month",
    "kind",
    "category",
    "payment_method",
    "account_id",
    "card_id",
})


class RecurringService(StoreBackedService):
    """반복 거래 서비스

    Args:
        store: 문서 저장소
        tz: 달력 판단 타임존 (기본 BRT)
    """

    def __init__(self, store: IDocumentStore, tz: timezone = BRT):
        super().__init__(store)
        self.tz = tz

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def add_recurring(
        self,
        session: Session,
        description: str,
        amount: Decimal,
        day_of_month: int,
        kind: TransactionKind,
        category: str,
        payment_method: PaymentMethod = PaymentMethod.DEBIT,
        account_id: str | None = None,
        card_id: str | None = None,
    ) -> RecurringTransaction:
        """반복 거래 정의 등록 (last_processed = None)"""
        definition = build_entity(
            RecurringTransaction,
            owner_id=session.user_id,
            description=description,
            amount=require_positive(amount),
            day_of_month=day_of_month,
            kind=kind,
            category=category,
            payment_method=payment_method,
            account_id=account_id,
            card_id=card_id,
            last_processed=None,
            created_at=now_utc(),
        )
        store = self._store(session)
        await self._check_target(store, definition)

        definition.id = await store.create(Collections.RECURRING, definition.to_document())
        logger.info(f"반복 거래 등록: {description} {amount} 매월 {day_of_month}일")
        return definition

    async def list_recurring(self, session: Session) -> list[RecurringTransaction]:
        """정의 목록 (실행일 순)"""
        docs = await self._store(session).query(
            Collections.RECURRING, order_by=OrderBy("day_of_month")
        )
        return [RecurringTransaction.from_document(d.doc_id, d.data) for d in docs]

    async def update_recurring(
        self,
        session: Session,
        recurring_id: str,
        changes: Mapping[str, Any],
    ) -> RecurringTransaction:
        """정의 수정 (last_processed 유지)"""
        unknown = set(changes) - RECURRING_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"수정할 수 없는 필드: {sorted(unknown)}")

        store = self._store(session)
        async with store.transaction() as tx:
            current = await fetch_entity(
                tx, Collections.RECURRING, RecurringTransaction, recurring_id, "반복 거래"
            )
            updated = revalidate(current, **dict(changes))
            await self._check_target(tx, updated)
            tx.set(Collections.RECURRING, recurring_id, updated.to_document())
        return updated

    async def delete_recurring(self, session: Session, recurring_id: str) -> None:
        """정의 삭제 (이미 만든 거래는 유지)"""
        store = self._store(session)
        async with store.transaction() as tx:
            await fetch_entity(tx, Collections.RECURRING, RecurringTransaction, recurring_id, "반복 거래")
            tx.delete(Collections.RECURRING, recurring_id)
        logger.info(f"반복 거래 삭제: {recurring_id}")

    @staticmethod
    async def _check_target(reader, definition: RecurringTransaction) -> None:
        if definition.card_id:
            await fetch_entity(reader, Collections.CREDIT_CARDS, CreditCard, definition.card_id, "카드")
        else:
            await require_account(reader, definition.account_id)

    # -------------------------------------------------------------------------
    # 실체화
    # -------------------------------------------------------------------------

    def state_of(self, definition: RecurringTransaction, now: datetime | None = None) -> RecurringState:
        """정의의 현재 상태"""
        today = local_date(now or now_utc(), self.tz)
        return recurring_state(definition.last_processed, today, self.tz)

    async def process_due(self, session: Session, now: datetime | None = None) -> int:
        """이번 달 실행일이 지난 미처리 정의를 실체화

        정의 하나가 실패하면 로그만 남기고 다음 정의를 계속 처리한다.

        Args:
            session: 세션
            now: 기준 시각 (None이면 현재 UTC)

        Returns:
            실체화한 건수
        """
        now = now or now_utc()
        today = local_date(now, self.tz)
        store = self._store(session)

        docs = await store.query(Collections.RECURRING, order_by=OrderBy("day_of_month"))
        count = 0
        for doc in docs:
            definition = RecurringTransaction.from_document(doc.doc_id, doc.data)
            if not is_recurring_due(definition.day_of_month, definition.last_processed, today, self.tz):
                continue

            try:
                if await self._materialize(session, store, definition, today, now):
                    count += 1
            except LedgerError as e:
                logger.error(
                    f"반복 거래 실체화 실패: {definition.id} ({definition.description}): {e}",
                    extra={"recurring_id": definition.id, "owner_id": session.user_id},
                )

        if count:
            logger.info(f"반복 거래 실체화: {count}건 (owner={session.user_id}, {today})")
        return count

    async def _materialize(
        self,
        session: Session,
        store: IDocumentStore,
        snapshot: RecurringTransaction,
        today: date,
        now: datetime,
    ) -> bool:
        """정의 1건 실체화 (정의 재확인 + 실체화 + 처리 기록, 하나의 트랜잭션)

        Returns:
            True: 실체화함, False: 다른 세션이 이미 처리함
        """
        card: CreditCard | None = None
        if snapshot.card_id:
            card = await fetch_entity(store, Collections.CREDIT_CARDS, CreditCard, snapshot.card_id, "카드")
        else:
            await require_account(store, snapshot.account_id)

        async with store.transaction() as tx:
            current = await fetch_entity(
                tx, Collections.RECURRING, RecurringTransaction, snapshot.id, "반복 거래"
            )
            if not is_recurring_due(current.day_of_month, current.last_processed, today, self.tz):
                return False
            if (current.card_id, current.account_id) != (snapshot.card_id, snapshot.account_id):
                return False

            occurs_on = occurrence_date(current.day_of_month, today)

            if card is not None:
                invoice = await ensure_invoice(
                    tx, session, card, resolve_period(occurs_on, card.closing_day)
                )
                append_item(
                    tx,
                    session,
                    invoice,
                    kind=InvoiceItemKind.PURCHASE,
                    description=current.description,
                    amount=current.amount,
                    category=current.category,
                    purchase_date=occurs_on,
                    recurring_id=current.id,
                )
            else:
                book_transaction(tx, session, TransactionDraft(
                    amount=current.amount,
                    date=occurs_on,
                    kind=current.kind,
                    category=current.category,
                    account_id=current.account_id,
                    description=current.description,
                    payment_method=current.payment_method,
                    recurring_id=current.id,
                ))

            tx.update(Collections.RECURRING, current.id, {"last_processed": now})

        logger.info(f"반복 거래 실체화: {current.description} {current.amount} ({occurs_on})")
        return True
