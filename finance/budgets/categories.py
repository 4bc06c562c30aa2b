"""
거래 카테고리
"""

import logging

from adapters.interfaces import IStoreTransaction
from adapters.models import OrderBy, where
from core.constants import Collections, DefaultCategories
from core.domain.models import Category
from core.errors import ValidationError
from core.session import Session
from core.types import TransactionKind
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity

logger = logging.getLogger(__name__)


def create_default_categories(tx: IStoreTransaction, session: Session) -> int:
    """기본 카테고리 생성 (호출자의 트랜잭션 안에서)

    Returns:
        생성한 개수
    """
    created_at = now_utc()
    defaults = [(name, TransactionKind.REVENUE) for name in DefaultCategories.REVENUE]
    defaults += [(name, TransactionKind.EXPENSE) for name in DefaultCategories.EXPENSE]

    for name, kind in defaults:
        category = build_entity(
            Category, owner_id=session.user_id, name=name, kind=kind, created_at=created_at
        )
        tx.create(Collections.CATEGORIES, category.to_document())
    return len(defaults)


class CategoryService(StoreBackedService):
    """카테고리 서비스"""

    async def list_categories(
        self,
        session: Session,
        kind: TransactionKind | None = None,
    ) -> list[Category]:
        filters = [where("kind", "==", kind)] if kind is not None else []
        docs = await self._store(session).query(
            Collections.CATEGORIES, filters, order_by=OrderBy("name")
        )
        return [Category.from_document(d.doc_id, d.data) for d in docs]

    async def add_category(self, session: Session, name: str, kind: TransactionKind) -> Category:
        """카테고리 추가 (같은 종류 내 이름 중복 거부)"""
        name = (name or "").strip()
        category = build_entity(
            Category, owner_id=session.user_id, name=name, kind=kind, created_at=now_utc()
        )

        store = self._store(session)
        async with store.transaction() as tx:
            duplicates = await tx.query(
                Collections.CATEGORIES,
                [where("name", "==", name), where("kind", "==", kind)],
            )
            if duplicates:
                raise ValidationError(
                    f"이미 있는 카테고리: {name} ({kind.value})",
                    user_message="같은 이름의 카테고리가 있습니다",
                )
            category.id = tx.create(Collections.CATEGORIES, category.to_document())

        logger.info(f"카테고리 추가: {name} ({kind.value})")
        return category

    async def delete_category(self, session: Session, category_id: str) -> None:
        """카테고리 삭제 (기존 거래의 카테고리 문자열은 유지)"""
        store = self._store(session)
        async with store.transaction() as tx:
            category = await fetch_entity(tx, Collections.CATEGORIES, Category, category_id, "카테고리")
            tx.delete(Collections.CATEGORIES, category_id)
        logger.info(f"카테고리 삭제: {category.name}")
