"""
문서 저장소 (SQLite 구현)

문서형 저장소의 다섯 가지 기본 연산을 SQLite 위에 구현:
1. 문서 CRUD
2. 필드 필터 / 정렬 조회
3. 컬렉션 그룹 조회 (parent_id=None 이면 모든 상위 문서의 하위 컬렉션 전체)
4. 단일 문서 원자적 증감 (increment)
5. 다중 문서 원자적 트랜잭션 (낙관적 동시성 제어)

트랜잭션 규칙:
- 트랜잭션 안의 읽기는 문서 버전을 기록한다 (없는 문서는 버전 0).
- 쓰기는 버퍼에 쌓였다가 커밋 시 한 번에 적용된다.
- 커밋 시 읽은 문서의 버전이 하나라도 바뀌었으면 ConsistencyError, 아무것도 기록되지 않는다.
- 모든 쓰기는 병합 결과를 엔티티 모델로 검증한다.

소유자 범위(for_owner)가 지정되면 다른 사용자 문서 접근은 StoreError(PERMISSION_DENIED).
"""

import asyncio
import json
import logging
import sqlite3
import uuid
from contextlib import asynccontextmanager
from decimal import Decimal, InvalidOperation
from typing import Any, AsyncIterator, Iterable, Mapping

import pydantic
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import OrderBy, QueryFilter, StoredDocument, WriteOp
from core.domain.models import ENTITY_MODELS
from core.errors import ConsistencyError, NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)

DocKey = tuple[str, str]

_SELECT_COLUMNS = "collection, doc_id, parent_id, data_json, version, seq"

_SQL_OPS = {"==": "=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def _jsonable(value: Any) -> Any:
    """Decimal/date/Enum 등을 JSON 호환 값으로 변환"""
    return to_jsonable_python(value)


def _row_to_doc(row: tuple[Any, ...]) -> StoredDocument:
    return StoredDocument(
        collection=row[0],
        doc_id=row[1],
        parent_id=row[2],
        data=json.loads(row[3]),
        version=row[4],
        seq=row[5],
    )


class DocumentStore:
    """SQLite 기반 문서 저장소

    Args:
        adapter: 연결된 SQLiteAdapter
        schemas: 컬렉션 → Pydantic 모델 (None이면 ENTITY_MODELS)
        owner_id: 소유자 범위 (None이면 관리자 범위)

    사용 예시:
    ```python
    store = DocumentStore(adapter).for_owner("uid-1")

    async with store.transaction() as tx:
        account = await tx.get("accounts", account_id)
        tx.increment("accounts", account_id, "current_balance", Decimal("-50"))
        tx.create("transactions", {...})
    ```
    """

    def __init__(
        self,
        adapter: SQLiteAdapter,
        schemas: Mapping[str, type[BaseModel]] | None = None,
        owner_id: str | None = None,
        lock: asyncio.Lock | None = None,
    ):
        self._adapter = adapter
        self._schemas = ENTITY_MODELS if schemas is None else schemas
        self._owner_id = owner_id
        # 같은 연결을 공유하는 모든 범위 뷰가 하나의 잠금을 쓴다
        self._lock = lock or asyncio.Lock()

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    def for_owner(self, owner_id: str) -> "DocumentStore":
        """소유자 범위 뷰 생성 (연결과 잠금 공유)"""
        if not owner_id:
            raise ValueError("owner_id는 비어 있을 수 없습니다")
        return DocumentStore(self._adapter, self._schemas, owner_id, self._lock)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        """단일 문서 조회

        Raises:
            StoreError: 다른 사용자 문서 (PERMISSION_DENIED)
        """
        async with self._lock:
            doc = await self._fetch(collection, doc_id)
        if doc is not None:
            self._check_owner(doc.data, collection, doc_id)
        return doc

    async def query(
        self,
        collection: str,
        filters: Iterable[QueryFilter] = (),
        order_by: OrderBy | None = None,
        parent_id: str | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """필터 조회

        parent_id=None 이면 컬렉션 그룹 조회 (모든 상위 문서 대상).
        정렬 값이 같으면 삽입 순번(seq)으로 정렬한다.
        소유자 범위에서는 owner_id 조건이 자동으로 추가된다.
        """
        sql, params = self._build_query(collection, list(filters), order_by, parent_id, limit)
        if sql is None:
            return []

        async with self._lock:
            try:
                rows = await self._adapter.fetchall(sql, tuple(params))
            except sqlite3.Error as e:
                raise self._translate(e) from e
        return [_row_to_doc(row) for row in rows]

    # -------------------------------------------------------------------------
    # 단일 쓰기 (1개 연산 트랜잭션)
    # -------------------------------------------------------------------------

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
        parent_id: str | None = None,
    ) -> str:
        """문서 생성 (doc_id가 이미 있으면 ConsistencyError)"""
        async with self.transaction() as tx:
            new_id = tx.create(collection, data, doc_id=doc_id, parent_id=parent_id)
        return new_id

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """필드 병합 갱신 (문서 없으면 NotFoundError)"""
        async with self.transaction() as tx:
            tx.update(collection, doc_id, fields)

    async def delete(self, collection: str, doc_id: str) -> None:
        """문서 삭제 (없으면 무시)"""
        async with self.transaction() as tx:
            tx.delete(collection, doc_id)

    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        delta: Decimal,
    ) -> None:
        """단일 문서 원자적 증감 (읽기 없음, 경쟁 조건 없음)"""
        async with self.transaction() as tx:
            tx.increment(collection, doc_id, field, delta)

    # -------------------------------------------------------------------------
    # 트랜잭션
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["StoreTransaction"]:
        """다중 문서 원자적 트랜잭션

        블록이 정상 종료되면 커밋, 예외 시 버퍼를 버린다 (아무것도 기록되지 않음).

        Raises:
            ConsistencyError: 읽은 문서가 커밋 전에 변경됨
        """
        tx = StoreTransaction(self)
        yield tx
        await tx.commit()

    # -------------------------------------------------------------------------
    # 내부 구현
    # -------------------------------------------------------------------------

    def _check_owner(self, data: Mapping[str, Any], collection: str, doc_id: str) -> None:
        if self._owner_id is None:
            return
        if data.get("owner_id") != self._owner_id:
            raise StoreError(
                StoreError.PERMISSION_DENIED,
                f"다른 사용자 문서 접근 거부: {collection}/{doc_id}",
            )

    def _normalize(self, collection: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """엔티티 모델 검증 후 JSON 호환 dict 반환"""
        model = self._schemas.get(collection)
        if model is None:
            raise ValueError(f"등록되지 않은 컬렉션: {collection}")

        try:
            entity = model.model_validate(dict(data))
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"{collection} 문서 검증 실패: {e}",
                user_message="입력 값이 올바르지 않습니다",
            ) from e
        return entity.model_dump(mode="json")

    def _translate(self, error: sqlite3.Error) -> Exception:
        if isinstance(error, sqlite3.IntegrityError):
            return ConsistencyError(f"동시 생성 충돌: {error}")
        if isinstance(error, sqlite3.OperationalError) and "no such table" in str(error):
            return StoreError(StoreError.FAILED_PRECONDITION, f"스키마 없음: {error}")
        return StoreError(StoreError.UNAVAILABLE, f"SQLite 오류: {error}")

    async def _fetch(self, collection: str, doc_id: str) -> StoredDocument | None:
        """잠금 없이 단일 행 조회 (호출자가 잠금 보유)"""
        try:
            row = await self._adapter.fetchone(
                f"SELECT {_SELECT_COLUMNS} FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )
        except sqlite3.Error as e:
            raise self._translate(e) from e
        return _row_to_doc(row) if row else None

    def _build_query(
        self,
        collection: str,
        filters: list[QueryFilter],
        order_by: OrderBy | None,
        parent_id: str | None,
        limit: int | None,
    ) -> tuple[str | None, list[Any]]:
        clauses = ["collection = ?"]
        params: list[Any] = [collection]

        if parent_id is not None:
            clauses.append("parent_id = ?")
            params.append(parent_id)

        if self._owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(self._owner_id)

        for f in filters:
            path = f"$.{f.field}"
            if f.op == "in":
                values = [self._sql_value(v) for v in f.value]
                if not values:
                    return None, []
                placeholders = ", ".join(["?"] * len(values))
                clauses.append(f"json_extract(data_json, ?) IN ({placeholders})")
                params.extend([path, *values])
            elif f.value is None:
                null_check = "IS NULL" if f.op == "==" else "IS NOT NULL"
                clauses.append(f"json_extract(data_json, ?) {null_check}")
                params.append(path)
            else:
                clauses.append(f"json_extract(data_json, ?) {_SQL_OPS[f.op]} ?")
                params.extend([path, self._sql_value(f.value)])

        sql = f"SELECT {_SELECT_COLUMNS} FROM documents WHERE " + " AND ".join(clauses)

        if order_by is not None:
            direction = "DESC" if order_by.descending else "ASC"
            sql += f" ORDER BY json_extract(data_json, ?) {direction}, seq {direction}"
            params.append(f"$.{order_by.field}")
        else:
            sql += " ORDER BY seq ASC"

        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        return sql, params

    @staticmethod
    def _sql_value(value: Any) -> Any:
        value = _jsonable(value)
        if isinstance(value, bool):
            return int(value)
        return value

    async def _apply(self, op: WriteOp) -> None:
        """버퍼된 쓰기 1건 적용 (커밋 중, 잠금 보유)"""
        existing = await self._fetch(op.collection, op.doc_id)

        if op.kind == "create":
            if existing is not None:
                raise ConsistencyError(f"이미 존재하는 문서: {op.collection}/{op.doc_id}")
            await self._insert(op.collection, op.doc_id, op.parent_id, op.data)
            return

        if op.kind == "set":
            if existing is None:
                await self._insert(op.collection, op.doc_id, op.parent_id, op.data)
            else:
                self._check_owner(existing.data, op.collection, op.doc_id)
                await self._write(op.collection, op.doc_id, op.data)
            return

        if op.kind == "delete":
            if existing is None:
                return
            if not op.force:
                self._check_owner(existing.data, op.collection, op.doc_id)
            await self._adapter.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (op.collection, op.doc_id),
            )
            return

        if existing is None:
            raise NotFoundError(f"문서를 찾을 수 없습니다: {op.collection}/{op.doc_id}")
        self._check_owner(existing.data, op.collection, op.doc_id)

        if op.kind == "update":
            merged = {**existing.data, **op.data}
        elif op.kind == "increment":
            merged = dict(existing.data)
            merged[op.data["field"]] = _add_decimal(
                existing.data.get(op.data["field"]), op.data["delta"]
            )
        else:
            raise ValueError(f"알 수 없는 쓰기 연산: {op.kind}")

        await self._write(op.collection, op.doc_id, self._normalize(op.collection, merged))

    async def _insert(
        self,
        collection: str,
        doc_id: str,
        parent_id: str | None,
        data: dict[str, Any],
    ) -> None:
        await self._adapter.execute(
            """
            INSERT INTO documents (collection, doc_id, parent_id, owner_id, data_json, version)
            VALUES (?, ?, ?, ?, ?, 1)
            """,
            (collection, doc_id, parent_id, data.get("owner_id"), json.dumps(data, ensure_ascii=False)),
        )

    async def _write(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self._adapter.execute(
            """
            UPDATE documents
            SET data_json = ?, version = version + 1, updated_at = datetime('now')
            WHERE collection = ? AND doc_id = ?
            """,
            (json.dumps(data, ensure_ascii=False), collection, doc_id),
        )


def _add_decimal(current: Any, delta: str) -> str:
    try:
        base = Decimal(str(current)) if current is not None else Decimal("0")
        return str(base + Decimal(delta))
    except InvalidOperation as e:
        raise ValidationError(f"숫자가 아닌 필드는 증감할 수 없습니다: {current}") from e


class StoreTransaction:
    """버퍼링 트랜잭션

    읽기(get/query)는 즉시 수행하고 버전을 기록한다.
    쓰기(create/set/update/increment/delete)는 버퍼에 쌓고 커밋 시 적용한다.
    get 은 같은 트랜잭션의 버퍼된 쓰기를 반영한 결과를 돌려준다.
    query 는 버퍼된 쓰기를 반영하지 않는다.
    """

    def __init__(self, store: DocumentStore):
        self._store = store
        self._reads: dict[DocKey, int] = {}
        self._snapshots: dict[DocKey, StoredDocument | None] = {}
        self._ops: list[WriteOp] = []
        self._done = False

    @property
    def owner_id(self) -> str | None:
        return self._store.owner_id

    @property
    def has_writes(self) -> bool:
        return bool(self._ops)

    # -------------------------------------------------------------------------
    # 읽기
    # -------------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        """문서 조회 (버전 기록, 버퍼된 쓰기 반영)"""
        key = (collection, doc_id)
        if key not in self._snapshots:
            async with self._store._lock:
                doc = await self._store._fetch(collection, doc_id)
            self._remember(key, doc)

        view = self._view(key)
        if view is not None:
            self._store._check_owner(view.data, collection, doc_id)
        return view

    async def query(
        self,
        collection: str,
        filters: Iterable[QueryFilter] = (),
        order_by: OrderBy | None = None,
        parent_id: str | None = None,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """필터 조회 (결과 문서마다 버전 기록)"""
        docs = await self._store.query(collection, filters, order_by, parent_id, limit)
        result: list[StoredDocument] = []
        for doc in docs:
            key = (collection, doc.doc_id)
            if key in self._snapshots:
                seen = self._snapshots[key]
                if seen is None or seen.version != doc.version:
                    raise ConsistencyError(f"트랜잭션 중 문서 변경 감지: {collection}/{doc.doc_id}")
            else:
                self._remember(key, doc)
            view = self._view(key)
            if view is not None:
                result.append(view)
        return result

    def _remember(self, key: DocKey, doc: StoredDocument | None) -> None:
        self._snapshots[key] = doc
        self._reads[key] = doc.version if doc is not None else 0

    def _view(self, key: DocKey) -> StoredDocument | None:
        base = self._snapshots.get(key)
        data = dict(base.data) if base is not None else None
        parent_id = base.parent_id if base is not None else None

        for op in self._ops:
            if (op.collection, op.doc_id) != key:
                continue
            if op.kind in ("create", "set"):
                data = dict(op.data)
                parent_id = op.parent_id if op.parent_id is not None else parent_id
            elif op.kind == "delete":
                data = None
            elif data is None:
                continue
            elif op.kind == "update":
                data.update(op.data)
            elif op.kind == "increment":
                data[op.data["field"]] = _add_decimal(data.get(op.data["field"]), op.data["delta"])

        if data is None:
            return None
        return StoredDocument(
            collection=key[0],
            doc_id=key[1],
            parent_id=parent_id,
            data=data,
            version=base.version if base is not None else 0,
            seq=base.seq if base is not None else 0,
        )

    # -------------------------------------------------------------------------
    # 쓰기 (버퍼)
    # -------------------------------------------------------------------------

    def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
        parent_id: str | None = None,
    ) -> str:
        """문서 생성 (ID 미지정 시 uuid 발급)

        Returns:
            문서 ID
        """
        self._ensure_open()
        doc_id = doc_id or uuid.uuid4().hex
        normalized = self._store._normalize(collection, data)
        self._store._check_owner(normalized, collection, doc_id)
        self._ops.append(WriteOp("create", collection, doc_id, parent_id, normalized))
        return doc_id

    def set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        parent_id: str | None = None,
    ) -> None:
        """문서 전체 쓰기 (없으면 생성)"""
        self._ensure_open()
        normalized = self._store._normalize(collection, data)
        self._store._check_owner(normalized, collection, doc_id)
        self._ops.append(WriteOp("set", collection, doc_id, parent_id, normalized))

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """필드 병합 갱신 (검증은 커밋 시 병합 결과로)"""
        self._ensure_open()
        if "owner_id" in fields:
            raise ValidationError("owner_id는 변경할 수 없습니다")
        self._ops.append(WriteOp("update", collection, doc_id, None, _jsonable(dict(fields))))

    def increment(self, collection: str, doc_id: str, field: str, delta: Decimal) -> None:
        """숫자 필드 증감"""
        self._ensure_open()
        if isinstance(delta, float):
            raise TypeError("증감 값에 float를 사용할 수 없습니다")
        self._ops.append(
            WriteOp("increment", collection, doc_id, None, {"field": field, "delta": str(delta)})
        )

    def delete(self, collection: str, doc_id: str, force: bool = False) -> None:
        """문서 삭제

        force=True 면 커밋 시 소유자 검사를 하지 않는다.
        읽기가 거부된 연결 문서를 정리할 때만 쓴다.
        """
        self._ensure_open()
        self._ops.append(WriteOp("delete", collection, doc_id, force=force))

    def _ensure_open(self) -> None:
        if self._done:
            raise RuntimeError("이미 종료된 트랜잭션입니다")

    # -------------------------------------------------------------------------
    # 커밋
    # -------------------------------------------------------------------------

    async def commit(self) -> None:
        """읽은 버전 검증 후 버퍼된 쓰기를 한 번에 적용

        Raises:
            ConsistencyError: 읽은 문서의 버전이 바뀜
        """
        self._ensure_open()
        self._done = True
        if not self._ops:
            return

        store = self._store
        async with store._lock:
            try:
                async with store._adapter.transaction(immediate=True):
                    for (collection, doc_id), expected in self._reads.items():
                        current = await store._fetch(collection, doc_id)
                        actual = current.version if current is not None else 0
                        if actual != expected:
                            raise ConsistencyError(
                                f"트랜잭션 충돌: {collection}/{doc_id} "
                                f"(expected v{expected}, actual v{actual})",
                                user_message="다른 작업과 충돌했습니다. 다시 시도하세요",
                            )

                    for op in self._ops:
                        await store._apply(op)
            except sqlite3.Error as e:
                raise store._translate(e) from e

        logger.debug(f"트랜잭션 커밋: reads={len(self._reads)}, writes={len(self._ops)}")
