"""
문서 저장소 테스트

CRUD, 조회, 소유자 범위, 트랜잭션 충돌 감지, 쓰기 검증.
"""

from decimal import Decimal

import pytest

from adapters.db.document_store import DocumentStore, StoreTransaction
from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import OrderBy, where
from core.constants import Collections
from core.errors import ConsistencyError, NotFoundError, StoreError, ValidationError


def _account(owner: str = "user-1", name: str = "Nubank", **extra) -> dict:
    return {"owner_id": owner, "name": name, **extra}


class TestCrud:
    """단일 문서 연산"""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        doc = await store.get(Collections.ACCOUNTS, doc_id)

        assert doc is not None
        assert doc.data["name"] == "Nubank"
        assert doc.data["current_balance"] == "0"
        assert doc.version == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, store: DocumentStore) -> None:
        assert await store.get(Collections.ACCOUNTS, "missing") is None

    @pytest.mark.asyncio
    async def test_create_with_existing_id(self, store: DocumentStore) -> None:
        await store.create(Collections.ACCOUNTS, _account(), doc_id="a1")

        with pytest.raises(ConsistencyError):
            await store.create(Collections.ACCOUNTS, _account(name="Other"), doc_id="a1")

    @pytest.mark.asyncio
    async def test_update_merges_and_bumps_version(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        await store.update(Collections.ACCOUNTS, doc_id, {"name": "Itaú"})

        doc = await store.get(Collections.ACCOUNTS, doc_id)
        assert doc.data["name"] == "Itaú"
        assert doc.data["owner_id"] == "user-1"
        assert doc.version == 2

    @pytest.mark.asyncio
    async def test_update_missing(self, store: DocumentStore) -> None:
        with pytest.raises(NotFoundError):
            await store.update(Collections.ACCOUNTS, "missing", {"name": "x"})

    @pytest.mark.asyncio
    async def test_delete(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        await store.delete(Collections.ACCOUNTS, doc_id)
        await store.delete(Collections.ACCOUNTS, doc_id)

        assert await store.get(Collections.ACCOUNTS, doc_id) is None

    @pytest.mark.asyncio
    async def test_increment(self, store: DocumentStore) -> None:
        """원자적 증감"""
        doc_id = await store.create(Collections.ACCOUNTS, _account(current_balance="100"))

        await store.increment(Collections.ACCOUNTS, doc_id, "current_balance", Decimal("-30.50"))
        await store.increment(Collections.ACCOUNTS, doc_id, "current_balance", Decimal("10"))

        doc = await store.get(Collections.ACCOUNTS, doc_id)
        assert Decimal(doc.data["current_balance"]) == Decimal("79.50")

    @pytest.mark.asyncio
    async def test_increment_rejects_float(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        with pytest.raises(TypeError):
            await store.increment(Collections.ACCOUNTS, doc_id, "current_balance", 1.5)  # type: ignore[arg-type]


class TestValidation:
    """쓰기 검증"""

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, store: DocumentStore) -> None:
        with pytest.raises(ValidationError):
            await store.create(Collections.ACCOUNTS, _account(color="blue"))

    @pytest.mark.asyncio
    async def test_missing_required_field(self, store: DocumentStore) -> None:
        with pytest.raises(ValidationError):
            await store.create(Collections.ACCOUNTS, {"owner_id": "user-1"})

    @pytest.mark.asyncio
    async def test_merged_update_validated(self, store: DocumentStore) -> None:
        """병합 결과가 모델을 위반하면 커밋 거부"""
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        with pytest.raises(ValidationError):
            await store.update(Collections.ACCOUNTS, doc_id, {"type": "spaceship"})

        doc = await store.get(Collections.ACCOUNTS, doc_id)
        assert doc.data["type"] == "checking"

    @pytest.mark.asyncio
    async def test_owner_id_immutable(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        with pytest.raises(ValidationError):
            await store.update(Collections.ACCOUNTS, doc_id, {"owner_id": "user-2"})

    @pytest.mark.asyncio
    async def test_unregistered_collection(self, store: DocumentStore) -> None:
        with pytest.raises(ValueError, match="등록되지 않은 컬렉션"):
            await store.create("unknown", {"owner_id": "user-1"})


class TestQuery:
    """필터 / 정렬 / 컬렉션 그룹 조회"""

    @pytest.mark.asyncio
    async def test_filters_and_order(self, store: DocumentStore) -> None:
        await store.create(Collections.ACCOUNTS, _account(name="C"))
        await store.create(Collections.ACCOUNTS, _account(name="A", status="archived"))
        await store.create(Collections.ACCOUNTS, _account(name="B"))

        docs = await store.query(
            Collections.ACCOUNTS,
            [where("status", "==", "active")],
            order_by=OrderBy("name"),
        )

        assert [d.data["name"] for d in docs] == ["B", "C"]

    @pytest.mark.asyncio
    async def test_descending_with_limit(self, store: DocumentStore) -> None:
        for name in ("A", "B", "C"):
            await store.create(Collections.ACCOUNTS, _account(name=name))

        docs = await store.query(
            Collections.ACCOUNTS, order_by=OrderBy("name", descending=True), limit=2
        )

        assert [d.data["name"] for d in docs] == ["C", "B"]

    @pytest.mark.asyncio
    async def test_ties_ordered_by_insertion(self, store: DocumentStore) -> None:
        first = await store.create(Collections.ACCOUNTS, _account(name="Same"))
        second = await store.create(Collections.ACCOUNTS, _account(name="Same"))

        docs = await store.query(Collections.ACCOUNTS, order_by=OrderBy("name"))

        assert [d.doc_id for d in docs] == [first, second]

    @pytest.mark.asyncio
    async def test_in_and_null_filters(self, store: DocumentStore) -> None:
        await store.create(Collections.ACCOUNTS, _account(name="A", type="wallet"))
        await store.create(Collections.ACCOUNTS, _account(name="B", type="savings"))
        await store.create(Collections.ACCOUNTS, _account(name="C", portfolio_id="p1", type="investment"))

        in_docs = await store.query(Collections.ACCOUNTS, [where("type", "in", ["wallet", "savings"])])
        null_docs = await store.query(Collections.ACCOUNTS, [where("portfolio_id", "==", None)])
        empty = await store.query(Collections.ACCOUNTS, [where("type", "in", [])])

        assert {d.data["name"] for d in in_docs} == {"A", "B"}
        assert {d.data["name"] for d in null_docs} == {"A", "B"}
        assert empty == []

    @pytest.mark.asyncio
    async def test_collection_group(self, store: DocumentStore) -> None:
        """parent_id=None 이면 모든 상위 문서의 하위 컬렉션"""
        for asset_id, ticker in (("s1", "PETR4"), ("s2", "VALE3")):
            await store.create(
                Collections.MOVEMENTS,
                {
                    "owner_id": "user-1",
                    "portfolio_id": "p1",
                    "asset_id": asset_id,
                    "ticker": ticker,
                    "kind": "dividend",
                    "quantity": "10",
                    "total_cost": "5",
                    "date": "2026-03-01",
                },
                parent_id=asset_id,
            )

        group = await store.query(Collections.MOVEMENTS)
        one = await store.query(Collections.MOVEMENTS, parent_id="s2")

        assert len(group) == 2
        assert [d.data["ticker"] for d in one] == ["VALE3"]
        assert one[0].parent_id == "s2"


class TestOwnerScope:
    """소유자 범위"""

    @pytest.mark.asyncio
    async def test_query_scoped(self, store: DocumentStore) -> None:
        await store.create(Collections.ACCOUNTS, _account(owner="user-1"))
        await store.create(Collections.ACCOUNTS, _account(owner="user-2"))

        docs = await store.for_owner("user-2").query(Collections.ACCOUNTS)

        assert [d.data["owner_id"] for d in docs] == ["user-2"]

    @pytest.mark.asyncio
    async def test_get_foreign_document(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account(owner="user-1"))

        with pytest.raises(StoreError) as exc_info:
            await store.for_owner("user-2").get(Collections.ACCOUNTS, doc_id)

        assert exc_info.value.code == StoreError.PERMISSION_DENIED
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_create_for_other_owner(self, store: DocumentStore) -> None:
        with pytest.raises(StoreError):
            await store.for_owner("user-2").create(Collections.ACCOUNTS, _account(owner="user-1"))

    @pytest.mark.asyncio
    async def test_write_foreign_document(self, store: DocumentStore) -> None:
        """쓰기 권한 검사는 커밋 시점"""
        doc_id = await store.create(Collections.ACCOUNTS, _account(owner="user-1", current_balance="10"))
        intruder = store.for_owner("user-2")

        with pytest.raises(StoreError):
            await intruder.increment(Collections.ACCOUNTS, doc_id, "current_balance", Decimal("5"))
        with pytest.raises(StoreError):
            await intruder.delete(Collections.ACCOUNTS, doc_id)

        doc = await store.get(Collections.ACCOUNTS, doc_id)
        assert doc.data["current_balance"] == "10"

    @pytest.mark.asyncio
    async def test_forced_delete_of_foreign_document(self, store: DocumentStore) -> None:
        """읽기가 거부된 문서도 force 삭제는 적용된다"""
        doc_id = await store.create(Collections.ACCOUNTS, _account(owner="user-1"))
        intruder = store.for_owner("user-2")

        async with intruder.transaction() as tx:
            with pytest.raises(StoreError):
                await tx.get(Collections.ACCOUNTS, doc_id)
            tx.delete(Collections.ACCOUNTS, doc_id, force=True)

        assert await store.get(Collections.ACCOUNTS, doc_id) is None


class TestTransaction:
    """다중 문서 트랜잭션"""

    @pytest.mark.asyncio
    async def test_atomic_commit(self, store: DocumentStore) -> None:
        async with store.transaction() as tx:
            a = tx.create(Collections.ACCOUNTS, _account(name="A"))
            b = tx.create(Collections.ACCOUNTS, _account(name="B"))
            tx.increment(Collections.ACCOUNTS, a, "current_balance", Decimal("5"))

        assert (await store.get(Collections.ACCOUNTS, a)).data["current_balance"] == "5"
        assert await store.get(Collections.ACCOUNTS, b) is not None

    @pytest.mark.asyncio
    async def test_exception_discards_writes(self, store: DocumentStore) -> None:
        with pytest.raises(RuntimeError):
            async with store.transaction() as tx:
                tx.create(Collections.ACCOUNTS, _account(), doc_id="a1")
                raise RuntimeError("중단")

        assert await store.get(Collections.ACCOUNTS, "a1") is None

    @pytest.mark.asyncio
    async def test_failed_op_rolls_back_all(self, store: DocumentStore) -> None:
        """커밋 중 한 연산이 실패하면 앞선 연산도 기록되지 않음"""
        with pytest.raises(NotFoundError):
            async with store.transaction() as tx:
                tx.create(Collections.ACCOUNTS, _account(), doc_id="a1")
                tx.update(Collections.ACCOUNTS, "missing", {"name": "x"})

        assert await store.get(Collections.ACCOUNTS, "a1") is None

    @pytest.mark.asyncio
    async def test_conflict_detected(self, store: DocumentStore) -> None:
        """읽은 문서가 커밋 전에 바뀌면 ConsistencyError, 아무것도 기록되지 않음"""
        doc_id = await store.create(Collections.ACCOUNTS, _account(current_balance="100"))

        with pytest.raises(ConsistencyError) as exc_info:
            async with store.transaction() as tx:
                await tx.get(Collections.ACCOUNTS, doc_id)
                await store.increment(Collections.ACCOUNTS, doc_id, "current_balance", Decimal("1"))
                tx.update(Collections.ACCOUNTS, doc_id, {"name": "Changed"})
                tx.create(Collections.ACCOUNTS, _account(name="New"), doc_id="new")

        assert exc_info.value.retryable is True
        doc = await store.get(Collections.ACCOUNTS, doc_id)
        assert doc.data["name"] == "Nubank"
        assert doc.data["current_balance"] == "101"
        assert await store.get(Collections.ACCOUNTS, "new") is None

    @pytest.mark.asyncio
    async def test_absent_read_conflicts_with_create(self, store: DocumentStore) -> None:
        """없던 문서를 읽은 뒤 다른 쪽이 만들면 충돌"""
        with pytest.raises(ConsistencyError):
            async with store.transaction() as tx:
                assert await tx.get(Collections.ACCOUNTS, "a1") is None
                await store.create(Collections.ACCOUNTS, _account(), doc_id="a1")
                tx.create(Collections.ACCOUNTS, _account(name="Mine"), doc_id="a1")

        assert (await store.get(Collections.ACCOUNTS, "a1")).data["name"] == "Nubank"

    @pytest.mark.asyncio
    async def test_read_only_transaction_never_conflicts(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account())

        async with store.transaction() as tx:
            await tx.get(Collections.ACCOUNTS, doc_id)
            await store.update(Collections.ACCOUNTS, doc_id, {"name": "Other"})

    @pytest.mark.asyncio
    async def test_get_sees_buffered_writes(self, store: DocumentStore) -> None:
        doc_id = await store.create(Collections.ACCOUNTS, _account(current_balance="10"))

        async with store.transaction() as tx:
            tx.increment(Collections.ACCOUNTS, doc_id, "current_balance", Decimal("5"))
            view = await tx.get(Collections.ACCOUNTS, doc_id)
            tx.delete(Collections.ACCOUNTS, doc_id)
            gone = await tx.get(Collections.ACCOUNTS, doc_id)

        assert view.data["current_balance"] == "15"
        assert gone is None

    @pytest.mark.asyncio
    async def test_query_hides_buffered_delete(self, store: DocumentStore) -> None:
        a = await store.create(Collections.ACCOUNTS, _account(name="A"))
        await store.create(Collections.ACCOUNTS, _account(name="B"))

        async with store.transaction() as tx:
            tx.delete(Collections.ACCOUNTS, a)
            docs = await tx.query(Collections.ACCOUNTS)

        assert [d.data["name"] for d in docs] == ["B"]

    @pytest.mark.asyncio
    async def test_closed_transaction(self, store: DocumentStore) -> None:
        tx = StoreTransaction(store)
        await tx.commit()

        with pytest.raises(RuntimeError):
            tx.create(Collections.ACCOUNTS, _account())


class TestStoreErrors:
    @pytest.mark.asyncio
    async def test_missing_schema(self) -> None:
        """스키마가 없으면 FAILED_PRECONDITION"""
        adapter = SQLiteAdapter(":memory:")
        await adapter.connect()
        try:
            with pytest.raises(StoreError) as exc_info:
                await DocumentStore(adapter).query(Collections.ACCOUNTS)
            assert exc_info.value.code == StoreError.FAILED_PRECONDITION
        finally:
            await adapter.close()
