"""
서비스 공통 헬퍼

엔티티 생성/로드 시 Pydantic 오류를 원장 ValidationError로 변환하고,
없는 문서는 NotFoundError로 통일한다.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, TypeVar

import pydantic

from adapters.interfaces import IDocumentStore
from adapters.models import StoredDocument
from core.domain.models import Entity
from core.errors import NotFoundError, ValidationError
from core.session import Session

E = TypeVar("E", bound=Entity)


class DocumentReader(Protocol):
    """get 을 가진 읽기 대상 (저장소 또는 트랜잭션)"""

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        ...


def build_entity(model: type[E], **fields: Any) -> E:
    """엔티티 생성 (검증 실패 시 ValidationError)"""
    try:
        return model(**fields)
    except pydantic.ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        raise ValidationError(
            f"{model.__name__} 검증 실패: {e}",
            user_message=first.get("msg") or "입력 값이 올바르지 않습니다",
        ) from e


def revalidate(entity: E, **changes: Any) -> E:
    """변경 사항을 반영한 새 엔티티 (전체 재검증)"""
    data = entity.model_dump()
    data.update(changes)
    data["id"] = entity.id
    return build_entity(type(entity), **data)


def to_entity(model: type[E], doc: StoredDocument | None, label: str, doc_id: str) -> E:
    """저장소 문서 → 엔티티 (없으면 NotFoundError)"""
    if doc is None:
        raise NotFoundError(f"{label} 없음: {doc_id}", user_message=f"{label}을(를) 찾을 수 없습니다")
    return model.from_document(doc.doc_id, doc.data)


async def fetch_entity(
    reader: DocumentReader,
    collection: str,
    model: type[E],
    doc_id: str,
    label: str,
) -> E:
    """문서 조회 후 엔티티 변환"""
    if not doc_id:
        raise ValidationError(f"{label} ID가 필요합니다")
    doc = await reader.get(collection, doc_id)
    return to_entity(model, doc, label, doc_id)


def require_positive(value: Decimal | int | str | None, label: str = "금액") -> Decimal:
    """0보다 큰 Decimal 로 변환

    Raises:
        ValidationError: 형식 오류 또는 값 ≤ 0
    """
    if value is None or isinstance(value, float):
        raise ValidationError(f"{label} 형식 오류: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"{label} 형식 오류: {value!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(
            f"{label}은(는) 0보다 커야 합니다: {value}",
            user_message=f"{label}은(는) 0보다 커야 합니다",
        )
    return amount


class StoreBackedService:
    """문서 저장소를 사용하는 서비스 기반 클래스

    Args:
        store: 관리자 범위 문서 저장소 (연산마다 사용자 범위로 좁힌다)
    """

    def __init__(self, store: IDocumentStore):
        self._root_store = store

    def _store(self, session: Session) -> IDocumentStore:
        return self._root_store.for_owner(session.user_id)
