"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
원장 서비스는 이 Protocol의 다섯 가지 기본 연산에만 의존한다.
"""

from decimal import Decimal
from typing import Any, AsyncContextManager, Iterable, Mapping, Protocol, runtime_checkable

from adapters.models import OrderBy, QueryFilter, StoredDocument


@runtime_checkable
class IStoreTransaction(Protocol):
    """다중 문서 원자적 트랜잭션 인터페이스

    읽기는 await, 쓰기는 버퍼링(동기 호출)된다.
    """

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        """문서 조회 (버전 기록)"""
        ...

    async def query(
        self,
        collection: str,
        filters: Iterable[QueryFilter] = (),
        order_by: OrderBy | None = None,
        parent_id: str | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """필터 조회 (결과 문서 버전 기록)"""
        ...

    def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
        parent_id: str | None = None,
    ) -> str:
        """문서 생성 예약

        Returns:
            문서 ID (미지정 시 발급)
        """
        ...

    def set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        parent_id: str | None = None,
    ) -> None:
        """문서 전체 쓰기 예약"""
        ...

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """필드 병합 갱신 예약"""
        ...

    def increment(self, collection: str, doc_id: str, field: str, delta: Decimal) -> None:
        """숫자 필드 증감 예약"""
        ...

    def delete(self, collection: str, doc_id: str, force: bool = False) -> None:
        """문서 삭제 예약 (force=True 면 소유자 검사 생략)"""
        ...


@runtime_checkable
class IDocumentStore(Protocol):
    """문서 저장소 인터페이스

    1. CRUD
    2. 필터/정렬 조회
    3. 컬렉션 그룹 조회 (parent_id=None)
    4. 단일 문서 원자적 증감
    5. 다중 문서 원자적 트랜잭션
    """

    @property
    def owner_id(self) -> str | None:
        """소유자 범위 (None이면 관리자 범위)"""
        ...

    def for_owner(self, owner_id: str) -> "IDocumentStore":
        """소유자 범위 뷰"""
        ...

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        ...

    async def query(
        self,
        collection: str,
        filters: Iterable[QueryFilter] = (),
        order_by: OrderBy | None = None,
        parent_id: str | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        ...

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
        parent_id: str | None = None,
    ) -> str:
        ...

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    async def increment(self, collection: str, doc_id: str, field: str, delta: Decimal) -> None:
        ...

    def transaction(self) -> AsyncContextManager[IStoreTransaction]:
        """원자적 트랜잭션 컨텍스트"""
        ...
