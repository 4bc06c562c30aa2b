"""
Protocol 인터페이스 테스트

SQLite 문서 저장소가 Protocol을 구현하는지 확인.
"""

import pytest

from adapters.db.document_store import DocumentStore, StoreTransaction
from adapters.interfaces import IDocumentStore, IStoreTransaction


class TestIDocumentStore:
    """IDocumentStore Protocol 테스트"""

    @pytest.mark.asyncio
    async def test_store_implements_protocol(self, store: DocumentStore) -> None:
        assert isinstance(store, IDocumentStore)

    @pytest.mark.asyncio
    async def test_owner_view_implements_protocol(self, store: DocumentStore) -> None:
        scoped = store.for_owner("user-1")

        assert isinstance(scoped, IDocumentStore)
        assert scoped.owner_id == "user-1"
        assert store.owner_id is None

    @pytest.mark.asyncio
    async def test_empty_owner_rejected(self, store: DocumentStore) -> None:
        with pytest.raises(ValueError):
            store.for_owner("")


class TestIStoreTransaction:
    """IStoreTransaction Protocol 테스트"""

    @pytest.mark.asyncio
    async def test_transaction_implements_protocol(self, store: DocumentStore) -> None:
        assert isinstance(StoreTransaction(store), IStoreTransaction)
