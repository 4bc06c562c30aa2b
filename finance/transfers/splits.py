"""
거래 분할

기존 거래의 분할 집합 교체와 카테고리별 집계. 분할은 잔액에 영향을 주지 않는다.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from adapters.models import where
from core.constants import Collections
from core.domain.models import Split, Transaction
from core.domain.splits import expand_splits, totals_by_category, validate_splits
from core.errors import ValidationError
from core.session import Session
from core.types import TransactionKind
from finance.base import StoreBackedService, fetch_entity

logger = logging.getLogger(__name__)


class SplitService(StoreBackedService):
    """거래 분할 서비스"""

    async def split_transaction(
        self,
        session: Session,
        transaction_id: str,
        splits: Iterable[Split | dict[str, Any]],
    ) -> Transaction:
        """거래의 분할 집합 교체 (빈 목록이면 분할 해제)

        Raises:
            ValidationError: 이체 거래, 합계 불일치, 항목 오류
        """
        splits = list(splits)
        store = self._store(session)
        async with store.transaction() as tx:
            original = await fetch_entity(
                tx, Collections.TRANSACTIONS, Transaction, transaction_id, "거래"
            )
            if original.kind == TransactionKind.TRANSFER:
                raise ValidationError("이체는 분할할 수 없습니다")

            validated = validate_splits(original.amount, splits)
            tx.update(
                Collections.TRANSACTIONS,
                transaction_id,
                {"splits": [s.model_dump() for s in validated]},
            )

        logger.info(f"거래 분할: {transaction_id} → {len(validated)}개 항목")
        return original.model_copy(update={"splits": validated})

    async def category_totals(
        self,
        session: Session,
        kind: TransactionKind,
        start: date,
        end: date,
    ) -> dict[str, Decimal]:
        """기간 내 카테고리별 합계 (분할 전개, end 미포함)"""
        docs = await self._store(session).query(
            Collections.TRANSACTIONS,
            [
                where("kind", "==", kind),
                where("date", ">=", start),
                where("date", "<", end),
            ],
        )
        items = [Transaction.from_document(d.doc_id, d.data) for d in docs]
        return totals_by_category(expand_splits(items))
