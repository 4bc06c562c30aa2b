"""
신용카드 관리
"""

import logging
from decimal import Decimal
from typing import Any, Mapping

from adapters.models import OrderBy, where
from core.constants import Collections
from core.domain.models import CreditCard, Invoice
from core.errors import ValidationError
from core.session import Session
from core.types import InvoiceStatus
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity, revalidate

logger = logging.getLogger(__name__)

CARD_UPDATABLE_FIELDS = frozenset({"name", "closing_day", "due_day", "credit_limit"})


class CardService(StoreBackedService):
    """신용카드 서비스"""

    async def add_card(
        self,
        session: Session,
        name: str,
        closing_day: int,
        due_day: int,
        credit_limit: Decimal = Decimal("0"),
    ) -> CreditCard:
        card = build_entity(
            CreditCard,
            owner_id=session.user_id,
            name=name.strip(),
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=credit_limit,
            created_at=now_utc(),
        )
        card.id = await self._store(session).create(Collections.CREDIT_CARDS, card.to_document())
        logger.info(f"카드 등록: {card.name} (마감 {closing_day}일, 납부 {due_day}일)")
        return card

    async def get_card(self, session: Session, card_id: str) -> CreditCard:
        return await fetch_entity(
            self._store(session), Collections.CREDIT_CARDS, CreditCard, card_id, "카드"
        )

    async def list_cards(self, session: Session) -> list[CreditCard]:
        docs = await self._store(session).query(Collections.CREDIT_CARDS, order_by=OrderBy("name"))
        return [CreditCard.from_document(d.doc_id, d.data) for d in docs]

    async def update_card(
        self,
        session: Session,
        card_id: str,
        changes: Mapping[str, Any],
    ) -> CreditCard:
        """카드 정보 변경 (기존 청구서 항목은 이동하지 않음)"""
        unknown = set(changes) - CARD_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"수정할 수 없는 필드: {sorted(unknown)}")

        store = self._store(session)
        async with store.transaction() as tx:
            card = await fetch_entity(tx, Collections.CREDIT_CARDS, CreditCard, card_id, "카드")
            updated = revalidate(card, **dict(changes))
            tx.set(Collections.CREDIT_CARDS, card_id, updated.to_document())
        return updated

    async def delete_card(self, session: Session, card_id: str) -> None:
        """카드 삭제

        미결제 잔액이 있는 청구서나 카드 결제 반복 거래가 있으면 거부.
        """
        store = self._store(session)
        async with store.transaction() as tx:
            await fetch_entity(tx, Collections.CREDIT_CARDS, CreditCard, card_id, "카드")

            invoices = await tx.query(
                Collections.INVOICES,
                [where("card_id", "==", card_id), where("status", "!=", InvoiceStatus.PAID)],
            )
            unpaid = [
                Invoice.from_document(d.doc_id, d.data)
                for d in invoices
                if Decimal(str(d.data.get("total_amount", "0"))) != 0
            ]
            if unpaid:
                raise ValidationError(
                    f"미결제 청구서가 있는 카드: {card_id} ({len(unpaid)}건)",
                    user_message="미결제 청구서가 있어 카드를 삭제할 수 없습니다",
                )

            recurring = await tx.query(Collections.RECURRING, [where("card_id", "==", card_id)])
            if recurring:
                raise ValidationError(
                    f"반복 거래가 연결된 카드: {card_id}",
                    user_message="이 카드를 쓰는 반복 거래를 먼저 삭제하세요",
                )

            tx.delete(Collections.CREDIT_CARDS, card_id)

        logger.info(f"카드 삭제: {card_id}")
