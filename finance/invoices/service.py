"""
청구서 기간 관리 (Invoice Periodizer)

청구서 불변식:
    invoice.total_amount == Σ(청구서 항목 금액)

항목 추가/수정/삭제는 항목 문서와 청구서 합계 증감을 항상 같은 트랜잭션에 넣는다.
청구서 ID는 (사용자, 카드, 기간)으로 결정되므로 find-or-create 가 중복 청구서를 만들지 않는다.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from adapters.interfaces import IStoreTransaction
from adapters.models import OrderBy, where
from core.constants import Collections, Defaults
from core.domain.models import CreditCard, Invoice, InvoiceItem, Split, Transaction
from core.domain.splits import validate_splits
from core.domain.state_machines import (
    is_invoice_overdue,
    validate_invoice_transition,
)
from core.errors import NotFoundError, ValidationError
from core.session import Session
from core.types import InvoiceItemKind, InvoiceStatus, TransactionKind
from core.utils.idempotency import make_invoice_id
from core.utils.money import split_installments
from core.utils.timezone import now_utc, today_local
from finance.base import (
    StoreBackedService,
    build_entity,
    fetch_entity,
    require_positive,
    revalidate,
)
from finance.invoices.periods import InvoicePeriod, due_date_for, resolve_period
from finance.ledger.transactions import TransactionDraft, book_transaction, require_account

logger = logging.getLogger(__name__)

ITEM_UPDATABLE_FIELDS = frozenset({"description", "amount", "category", "purchase_date", "splits"})


@dataclass(frozen=True)
class LineItemDraft:
    """카드 구매 입력

    Attributes:
        amount: 구매 금액 (> 0, 할부면 전체 금액)
        purchase_date: 구매일 (청구 기간 결정)
        category: 카테고리
        splits: 카테고리 분할 (할부와 함께 사용 불가)
    """

    amount: Decimal
    purchase_date: date
    category: str
    description: str = ""
    splits: tuple[Split | dict[str, Any], ...] = ()
    recurring_id: str | None = None


# -------------------------------------------------------------------------
# 트랜잭션 내부 헬퍼
# -------------------------------------------------------------------------

async def ensure_invoice(
    tx: IStoreTransaction,
    session: Session,
    card: CreditCard,
    period: InvoicePeriod,
) -> Invoice:
    """기간 청구서 조회, 없으면 생성 예약 (create-if-absent)

    같은 기간 청구서를 동시에 만들면 늦게 커밋한 쪽이 ConsistencyError.
    """
    invoice_id = make_invoice_id(session.user_id, card.id, period.year, period.month)
    doc = await tx.get(Collections.INVOICES, invoice_id)
    if doc is not None:
        return Invoice.from_document(doc.doc_id, doc.data)

    invoice = build_entity(
        Invoice,
        owner_id=session.user_id,
        card_id=card.id,
        month=period.month,
        year=period.year,
        total_amount=Decimal("0"),
        status=InvoiceStatus.OPEN,
        due_date=due_date_for(period, card.due_day),
        created_at=now_utc(),
    )
    invoice.id = tx.create(Collections.INVOICES, invoice.to_document(), doc_id=invoice_id)
    logger.info(f"청구서 생성: card={card.id} {period.label()}")
    return invoice


def ensure_not_paid(invoice: Invoice) -> None:
    if invoice.status == InvoiceStatus.PAID:
        raise ValidationError(
            f"결제 완료된 청구서: {invoice.id}",
            user_message="이미 결제된 청구서에는 항목을 변경할 수 없습니다",
        )


def append_item(
    tx: IStoreTransaction,
    session: Session,
    invoice: Invoice,
    **fields: Any,
) -> InvoiceItem:
    """항목 생성 + 청구서 합계 증감 (호출자의 트랜잭션 안에서)"""
    ensure_not_paid(invoice)
    item = build_entity(
        InvoiceItem,
        owner_id=session.user_id,
        invoice_id=invoice.id,
        card_id=invoice.card_id,
        created_at=now_utc(),
        **fields,
    )
    item.id = tx.create(Collections.INVOICE_ITEMS, item.to_document(), parent_id=invoice.id)
    tx.increment(Collections.INVOICES, invoice.id, "total_amount", item.amount)
    return item


def remove_item(tx: IStoreTransaction, item: InvoiceItem) -> None:
    """항목 삭제 + 청구서 합계 감소 (호출자의 트랜잭션 안에서)"""
    tx.delete(Collections.INVOICE_ITEMS, item.id)
    tx.increment(Collections.INVOICES, item.invoice_id, "total_amount", -item.amount)


class InvoiceService(StoreBackedService):
    """카드 청구서 서비스

    사용 예시:
    ```python
    invoices = InvoiceService(store)
    items = await invoices.add_card_purchase(session, card_id, LineItemDraft(
        amount=Decimal("300"), purchase_date=date(2026, 3, 15), category="Lazer",
    ), installments=3)
    await invoices.pay_invoice(session, items[0].invoice_id, account_id, date(2026, 4, 20))
    ```
    """

    # -------------------------------------------------------------------------
    # 청구서 / 항목 추가
    # -------------------------------------------------------------------------

    async def find_or_create_invoice(
        self,
        session: Session,
        card_id: str,
        purchase_date: date,
    ) -> Invoice:
        """구매일이 속한 기간의 청구서 (없으면 생성)"""
        store = self._store(session)
        card = await fetch_entity(store, Collections.CREDIT_CARDS, CreditCard, card_id, "카드")
        period = resolve_period(purchase_date, card.closing_day)

        async with store.transaction() as tx:
            invoice = await ensure_invoice(tx, session, card, period)
        return invoice

    async def append_line_item(
        self,
        session: Session,
        invoice_id: str,
        draft: LineItemDraft,
    ) -> InvoiceItem:
        """지정 청구서에 항목 추가 (항목 생성 + 합계 증가, 하나의 트랜잭션)

        Raises:
            ValidationError: 금액 ≤ 0, 분할 오류, 결제 완료 청구서
            NotFoundError: 청구서 없음
        """
        amount, splits = self._validate_draft(draft)
        store = self._store(session)
        async with store.transaction() as tx:
            invoice = await fetch_entity(tx, Collections.INVOICES, Invoice, invoice_id, "청구서")
            item = append_item(
                tx,
                session,
                invoice,
                kind=InvoiceItemKind.PURCHASE,
                description=draft.description,
                amount=amount,
                category=draft.category.strip(),
                purchase_date=draft.purchase_date,
                splits=splits,
                recurring_id=draft.recurring_id,
            )

        logger.info(f"청구서 항목 추가: invoice={invoice_id} {amount}")
        return item

    async def add_card_purchase(
        self,
        session: Session,
        card_id: str,
        draft: LineItemDraft,
        installments: int = 1,
    ) -> list[InvoiceItem]:
        """카드 구매 등록

        기간 계산 → 청구서 find-or-create → 항목 추가.
        installments ≥ 2 면 센트 단위로 나누고 잔여분은 마지막 회차에 더한다.
        i 번째 회차는 기준 기간 + i 개월 청구서에 들어간다. 모든 회차는 하나의 트랜잭션.
        """
        amount, splits = self._validate_draft(draft)
        if installments < 1:
            raise ValidationError(f"할부 횟수 오류: {installments}")
        if installments >= 2 and splits:
            raise ValidationError(
                "할부 구매는 분할할 수 없습니다",
                user_message="할부 구매에는 카테고리 분할을 사용할 수 없습니다",
            )

        store = self._store(session)
        card = await fetch_entity(store, Collections.CREDIT_CARDS, CreditCard, card_id, "카드")
        base_period = resolve_period(draft.purchase_date, card.closing_day)

        if installments == 1:
            parts = [amount]
            group = None
        else:
            try:
                parts = split_installments(amount, installments)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            group = uuid.uuid4().hex

        items: list[InvoiceItem] = []
        async with store.transaction() as tx:
            for index, part in enumerate(parts):
                invoice = await ensure_invoice(tx, session, card, base_period.shift(index))
                description = draft.description
                extra: dict[str, Any] = {}
                if group is not None:
                    description = f"{draft.description} ({index + 1}/{installments})".strip()
                    extra = {
                        "installment_number": index + 1,
                        "installment_count": installments,
                        "installment_group": group,
                    }
                items.append(append_item(
                    tx,
                    session,
                    invoice,
                    kind=InvoiceItemKind.PURCHASE,
                    description=description,
                    amount=part,
                    category=draft.category.strip(),
                    purchase_date=draft.purchase_date,
                    splits=splits,
                    recurring_id=draft.recurring_id,
                    **extra,
                ))

        logger.info(
            f"카드 구매: card={card_id} {amount} ({installments}회) "
            f"→ {base_period.label()}부터"
        )
        return items

    @staticmethod
    def _validate_draft(draft: LineItemDraft) -> tuple[Decimal, list[Split]]:
        amount = require_positive(draft.amount)
        if not draft.category or not draft.category.strip():
            raise ValidationError("카테고리가 필요합니다", user_message="카테고리를 선택하세요")
        return amount, validate_splits(amount, draft.splits)

    # -------------------------------------------------------------------------
    # 결제
    # -------------------------------------------------------------------------

    async def pay_invoice(
        self,
        session: Session,
        invoice_id: str,
        account_id: str,
        payment_date: date,
    ) -> Transaction | None:
        """청구서 결제

        한 트랜잭션에서: 상태 paid, 정산 지출 거래 생성, 계좌 잔액 -total_amount.
        합계는 트랜잭션 안에서 읽은 현재 값을 사용한다. 합계가 0 이하면 상태만 바꾼다.

        Returns:
            정산 거래 (합계 0이면 None)

        Raises:
            StateMachineError: 이미 결제된 청구서
        """
        store = self._store(session)
        await require_account(store, account_id)

        settlement: Transaction | None = None
        async with store.transaction() as tx:
            invoice = await fetch_entity(tx, Collections.INVOICES, Invoice, invoice_id, "청구서")
            validate_invoice_transition(invoice.status, InvoiceStatus.PAID)

            fields: dict[str, Any] = {"status": InvoiceStatus.PAID, "paid_at": now_utc()}
            if invoice.total_amount > 0:
                settlement = book_transaction(tx, session, self._settlement_draft(
                    invoice, invoice.total_amount, account_id, payment_date,
                    f"Fatura {invoice.month:02d}/{invoice.year}",
                ))
                fields["payment_transaction_id"] = settlement.id
            tx.update(Collections.INVOICES, invoice_id, fields)

        logger.info(
            f"청구서 결제: {invoice_id} {invoice.total_amount} ← account={account_id}",
            extra={"owner_id": session.user_id},
        )
        return settlement

    async def make_advance_payment(
        self,
        session: Session,
        invoice_id: str,
        amount: Decimal,
        account_id: str,
        payment_date: date,
    ) -> Transaction:
        """선결제

        amount ≤ 0 은 어떤 읽기보다 먼저 거부.
        트랜잭션 안에서 현재 합계를 다시 읽어 amount > total 이면 거부하고,
        정산 거래 생성, 계좌 잔액 감소, 음수 선결제 항목 추가, 합계 감소를 함께 커밋한다.
        경쟁하는 선결제가 먼저 커밋되면 ConsistencyError.
        """
        amount = require_positive(amount, "선결제 금액")

        store = self._store(session)
        await require_account(store, account_id)

        async with store.transaction() as tx:
            invoice = await fetch_entity(tx, Collections.INVOICES, Invoice, invoice_id, "청구서")
            ensure_not_paid(invoice)
            if amount > invoice.total_amount:
                raise ValidationError(
                    f"선결제 금액이 청구서 잔액을 초과: {amount} > {invoice.total_amount}",
                    user_message="선결제 금액이 청구서 잔액보다 큽니다",
                )

            settlement = book_transaction(tx, session, self._settlement_draft(
                invoice, amount, account_id, payment_date,
                f"Pagamento antecipado {invoice.month:02d}/{invoice.year}",
            ))
            append_item(
                tx,
                session,
                invoice,
                kind=InvoiceItemKind.ADVANCE_PAYMENT,
                description="Pagamento antecipado",
                amount=-amount,
                category=Defaults.INVOICE_PAYMENT_CATEGORY,
                purchase_date=payment_date,
            )

        logger.info(
            f"선결제: {invoice_id} {amount} (잔액 {invoice.total_amount - amount})",
            extra={"owner_id": session.user_id},
        )
        return settlement

    @staticmethod
    def _settlement_draft(
        invoice: Invoice,
        amount: Decimal,
        account_id: str,
        payment_date: date,
        description: str,
    ) -> TransactionDraft:
        return TransactionDraft(
            amount=amount,
            date=payment_date,
            kind=TransactionKind.EXPENSE,
            category=Defaults.INVOICE_PAYMENT_CATEGORY,
            account_id=account_id,
            description=description,
            invoice_id=invoice.id,
        )

    # -------------------------------------------------------------------------
    # 항목 수정 / 삭제
    # -------------------------------------------------------------------------

    async def update_line_item(
        self,
        session: Session,
        original_invoice_id: str,
        item_id: str,
        changes: Mapping[str, Any],
    ) -> InvoiceItem:
        """항목 수정

        새 구매일로 기간을 다시 계산한다.
        - 같은 기간: 항목 갱신 + 합계를 금액 차이만큼 증감
        - 다른 기간: 기존 청구서에서 삭제(감소) 후 새 청구서에 생성(증가)
        두 경우 모두 하나의 트랜잭션.
        """
        unknown = set(changes) - ITEM_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"수정할 수 없는 필드: {sorted(unknown)}")
        if "amount" in changes:
            require_positive(changes["amount"])

        store = self._store(session)
        async with store.transaction() as tx:
            item = await self._load_item(tx, original_invoice_id, item_id)
            if item.kind != InvoiceItemKind.PURCHASE:
                raise ValidationError("선결제 항목은 수정할 수 없습니다")

            old_invoice = await fetch_entity(
                tx, Collections.INVOICES, Invoice, original_invoice_id, "청구서"
            )
            ensure_not_paid(old_invoice)
            card = await fetch_entity(tx, Collections.CREDIT_CARDS, CreditCard, item.card_id, "카드")

            updated = revalidate(item, **dict(changes))
            offset = (item.installment_number or 1) - 1
            new_period = resolve_period(updated.purchase_date, card.closing_day).shift(offset)

            if (new_period.year, new_period.month) == (old_invoice.year, old_invoice.month):
                tx.set(
                    Collections.INVOICE_ITEMS,
                    item_id,
                    updated.to_document(),
                    parent_id=original_invoice_id,
                )
                tx.increment(
                    Collections.INVOICES,
                    original_invoice_id,
                    "total_amount",
                    updated.amount - item.amount,
                )
            else:
                new_invoice = await ensure_invoice(tx, session, card, new_period)
                ensure_not_paid(new_invoice)
                remove_item(tx, item)
                updated = revalidate(updated, invoice_id=new_invoice.id)
                tx.create(
                    Collections.INVOICE_ITEMS,
                    updated.to_document(),
                    doc_id=item_id,
                    parent_id=new_invoice.id,
                )
                tx.increment(Collections.INVOICES, new_invoice.id, "total_amount", updated.amount)
                logger.info(
                    f"청구서 항목 이동: {item_id} {old_invoice.month:02d}/{old_invoice.year} "
                    f"→ {new_period.label()}"
                )

        return updated

    async def delete_line_item(self, session: Session, invoice_id: str, item_id: str) -> None:
        """항목 삭제 + 합계 감소 (하나의 트랜잭션)"""
        store = self._store(session)
        async with store.transaction() as tx:
            item = await self._load_item(tx, invoice_id, item_id)
            if item.kind != InvoiceItemKind.PURCHASE:
                raise ValidationError(
                    "선결제 항목은 삭제할 수 없습니다",
                    user_message="선결제는 정산 거래와 함께 관리됩니다",
                )
            invoice = await fetch_entity(tx, Collections.INVOICES, Invoice, invoice_id, "청구서")
            ensure_not_paid(invoice)
            remove_item(tx, item)

        logger.info(f"청구서 항목 삭제: invoice={invoice_id} item={item_id} ({item.amount})")

    @staticmethod
    async def _load_item(tx: IStoreTransaction, invoice_id: str, item_id: str) -> InvoiceItem:
        item = await fetch_entity(tx, Collections.INVOICE_ITEMS, InvoiceItem, item_id, "청구서 항목")
        if item.invoice_id != invoice_id:
            raise NotFoundError(
                f"청구서 {invoice_id}에 항목 {item_id}가 없습니다",
                user_message="청구서 항목을 찾을 수 없습니다",
            )
        return item

    # -------------------------------------------------------------------------
    # 마감 처리
    # -------------------------------------------------------------------------

    async def close_overdue_invoices(self, session: Session, today: date | None = None) -> int:
        """납부일이 지난 OPEN 청구서를 CLOSED 로 일괄 전환 (하나의 트랜잭션)

        Returns:
            전환한 청구서 수
        """
        today = today or today_local()
        store = self._store(session)
        async with store.transaction() as tx:
            docs = await tx.query(
                Collections.INVOICES,
                [where("status", "==", InvoiceStatus.OPEN), where("due_date", "<", today)],
            )
            overdue = [Invoice.from_document(d.doc_id, d.data) for d in docs]
            for invoice in overdue:
                if is_invoice_overdue(invoice.status, invoice.due_date, today):
                    validate_invoice_transition(invoice.status, InvoiceStatus.CLOSED)
                    tx.update(Collections.INVOICES, invoice.id, {"status": InvoiceStatus.CLOSED})

        if overdue:
            logger.info(f"청구서 마감 처리: {len(overdue)}건 (owner={session.user_id})")
        return len(overdue)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_invoice(self, session: Session, invoice_id: str) -> Invoice:
        return await fetch_entity(
            self._store(session), Collections.INVOICES, Invoice, invoice_id, "청구서"
        )

    async def list_invoices(
        self,
        session: Session,
        card_id: str | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        """청구서 목록 (납부일 최신순)"""
        filters = []
        if card_id is not None:
            filters.append(where("card_id", "==", card_id))
        if status is not None:
            filters.append(where("status", "==", status))
        docs = await self._store(session).query(
            Collections.INVOICES, filters, order_by=OrderBy("due_date", descending=True)
        )
        return [Invoice.from_document(d.doc_id, d.data) for d in docs]

    async def list_line_items(self, session: Session, invoice_id: str) -> list[InvoiceItem]:
        docs = await self._store(session).query(
            Collections.INVOICE_ITEMS,
            parent_id=invoice_id,
            order_by=OrderBy("purchase_date"),
        )
        return [InvoiceItem.from_document(d.doc_id, d.data) for d in docs]
