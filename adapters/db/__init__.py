"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 문서 저장소 구현.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    init_schema,
)
from adapters.db.document_store import (
    DocumentStore,
    StoreTransaction,
)

__all__ = [
    "SQLiteAdapter",
    "create_connection",
    "init_schema",
    "DocumentStore",
    "StoreTransaction",
]
