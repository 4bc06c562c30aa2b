"""
어댑터 레이어

외부 저장소와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IDocumentStore,
    IStoreTransaction,
)
from adapters.models import (
    StoredDocument,
    QueryFilter,
    OrderBy,
    where,
)

__all__ = [
    # Interfaces
    "IDocumentStore",
    "IStoreTransaction",
    # Models
    "StoredDocument",
    "QueryFilter",
    "OrderBy",
    "where",
]
