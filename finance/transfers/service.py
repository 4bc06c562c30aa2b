"""
계좌 간 이체

출금 계좌 -amount, 입금 계좌 +amount, 이체 거래 문서 생성을 하나의 원자적 쓰기로 처리.
같은 계좌 이체와 금액 ≤ 0 은 어떤 쓰기보다 먼저 거부한다.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from core.constants import Collections
from core.domain.models import Transaction
from core.errors import ValidationError
from core.session import Session
from core.types import TransactionKind
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity, require_positive, revalidate
from finance.ledger.transactions import (
    reapply_deltas,
    require_account,
    reverse_deltas,
    unbook_transaction,
)

logger = logging.getLogger(__name__)

TRANSFER_UPDATABLE_FIELDS = frozenset({
    "amount",
    "date",
    "description",
    "from_account_id",
    "to_account_id",
    "tags",
})


def _ensure_distinct(from_account_id: str | None, to_account_id: str | None) -> None:
    if not from_account_id or not to_account_id:
        raise ValidationError("출금/입금 계좌가 모두 필요합니다", user_message="계좌를 선택하세요")
    if from_account_id == to_account_id:
        raise ValidationError(
            f"같은 계좌로 이체할 수 없습니다: {from_account_id}",
            user_message="출금 계좌와 입금 계좌가 같습니다",
        )


class TransferService(StoreBackedService):
    """계좌 간 이체 서비스

    사용 예시:
    ```python
    transfers = TransferService(store)
    tx = await transfers.transfer_funds(session, acc_a, acc_b, Decimal("100"), date.today())
    ```
    """

    async def transfer_funds(
        self,
        session: Session,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        transfer_date: date,
        description: str = "",
    ) -> Transaction:
        """이체 실행

        Raises:
            ValidationError: 같은 계좌, 금액 ≤ 0, 보관 계좌
            NotFoundError: 계좌 없음
        """
        _ensure_distinct(from_account_id, to_account_id)
        amount = require_positive(amount)

        store = self._store(session)
        await require_account(store, from_account_id)
        await require_account(store, to_account_id)

        entity = build_entity(
            Transaction,
            owner_id=session.user_id,
            description=description or "Transferência",
            amount=amount,
            date=transfer_date,
            kind=TransactionKind.TRANSFER,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            created_at=now_utc(),
        )

        async with store.transaction() as tx:
            entity.id = tx.create(Collections.TRANSACTIONS, entity.to_document())
            reapply_deltas(tx, entity)

        logger.info(
            f"이체: {from_account_id} → {to_account_id} {amount}",
            extra={"transaction_id": entity.id, "owner_id": session.user_id},
        )
        return entity

    async def update_transfer(
        self,
        session: Session,
        transaction_id: str,
        changes: Mapping[str, Any],
    ) -> Transaction:
        """이체 수정 (원본 역적용 → 새 값 적용, 하나의 트랜잭션)"""
        unknown = set(changes) - TRANSFER_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"수정할 수 없는 필드: {sorted(unknown)}")
        if "amount" in changes:
            require_positive(changes["amount"])

        store = self._store(session)
        for key in ("from_account_id", "to_account_id"):
            if changes.get(key):
                await require_account(store, changes[key])

        async with store.transaction() as tx:
            original = await self._load_transfer(tx, transaction_id)
            updated = revalidate(original, **dict(changes))
            _ensure_distinct(updated.from_account_id, updated.to_account_id)

            reverse_deltas(tx, original)
            reapply_deltas(tx, updated)
            tx.set(Collections.TRANSACTIONS, transaction_id, updated.to_document())

        logger.info(f"이체 수정: {transaction_id}")
        return updated

    async def delete_transfer(self, session: Session, transaction_id: str) -> None:
        """이체 삭제 (양쪽 잔액 되돌림)"""
        store = self._store(session)
        async with store.transaction() as tx:
            original = await self._load_transfer(tx, transaction_id)
            unbook_transaction(tx, original)

        logger.info(f"이체 삭제: {transaction_id}")

    @staticmethod
    async def _load_transfer(tx, transaction_id: str) -> Transaction:
        original = await fetch_entity(tx, Collections.TRANSACTIONS, Transaction, transaction_id, "이체")
        if original.kind != TransactionKind.TRANSFER:
            raise ValidationError(f"이체 거래가 아닙니다: {transaction_id}")
        return original
