"""
예산

카테고리당 예산 1개 (결정적 ID {owner_id}_{category}).
사용량은 해당 월 지출 거래를 분할 전개한 카테고리 합계로 계산한다.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from adapters.models import OrderBy, where
from core.constants import Collections
from core.domain.models import Budget, Transaction
from core.domain.splits import expand_splits, totals_by_category
from core.errors import ValidationError
from core.session import Session
from core.types import TransactionKind
from core.utils.idempotency import make_budget_id
from core.utils.timezone import add_months, now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity, require_positive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetUsage:
    """예산 대비 사용량"""

    category: str
    budget: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent

    @property
    def ratio(self) -> Decimal:
        return self.spent / self.budget if self.budget else Decimal("0")

    @property
    def exceeded(self) -> bool:
        return self.spent > self.budget


class BudgetService(StoreBackedService):
    """예산 서비스"""

    async def set_budget(self, session: Session, category: str, amount: Decimal) -> Budget:
        """예산 설정 (같은 카테고리면 덮어쓰기)"""
        category = (category or "").strip()
        if not category:
            raise ValidationError("카테고리가 필요합니다", user_message="카테고리를 선택하세요")

        budget_id = make_budget_id(session.user_id, category)
        store = self._store(session)
        async with store.transaction() as tx:
            existing = await tx.get(Collections.BUDGETS, budget_id)
            budget = build_entity(
                Budget,
                owner_id=session.user_id,
                category=category,
                amount=require_positive(amount),
                created_at=existing.data.get("created_at") if existing else now_utc(),
            )
            tx.set(Collections.BUDGETS, budget_id, budget.to_document())

        budget.id = budget_id
        logger.info(f"예산 설정: {category} = {budget.amount}")
        return budget

    async def list_budgets(self, session: Session) -> list[Budget]:
        docs = await self._store(session).query(Collections.BUDGETS, order_by=OrderBy("category"))
        return [Budget.from_document(d.doc_id, d.data) for d in docs]

    async def delete_budget(self, session: Session, category: str) -> None:
        budget_id = make_budget_id(session.user_id, category)
        store = self._store(session)
        async with store.transaction() as tx:
            await fetch_entity(tx, Collections.BUDGETS, Budget, budget_id, "예산")
            tx.delete(Collections.BUDGETS, budget_id)
        logger.info(f"예산 삭제: {category}")

    async def budget_usage(self, session: Session, year: int, month: int) -> list[BudgetUsage]:
        """월별 예산 사용량 (예산이 있는 카테고리만, 카테고리순)"""
        budgets = await self.list_budgets(session)
        if not budgets:
            return []

        start = date(year, month, 1)
        end = date(*add_months(year, month, 1), 1)
        docs = await self._store(session).query(
            Collections.TRANSACTIONS,
            [
                where("kind", "==", TransactionKind.EXPENSE),
                where("date", ">=", start),
                where("date", "<", end),
            ],
        )
        expenses = [Transaction.from_document(d.doc_id, d.data) for d in docs]
        spent = totals_by_category(expand_splits(expenses))

        return [
            BudgetUsage(b.category, b.amount, spent.get(b.category, Decimal("0")))
            for b in budgets
        ]
