"""
SQLite 어댑터

문서 저장소(DocumentStore)의 물리 저장 계층.
WAL 모드로 열어 Web 프로세스와 점검 스크립트가 같은 파일을 함께 쓸 수 있다.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# documents 스키마 버전 (PRAGMA user_version)
SCHEMA_VERSION = 1


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성

    파일 DB는 WAL 모드, 메모리 DB는 기본 저널 모드로 연다.

    Args:
        db_path: DB 파일 경로 (":memory:" 이면 메모리 DB)

    Returns:
        aiosqlite 연결 객체
    """
    target = str(db_path)

    if target == MEMORY_DB:
        conn = await aiosqlite.connect(MEMORY_DB)
    else:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(target)
        await conn.execute("PRAGMA journal_mode=WAL")

    # 다른 프로세스가 쓰기 잠금을 잡고 있으면 30초까지 대기
    await conn.execute("PRAGMA busy_timeout=30000")

    logger.info("SQLite 연결 생성", extra={"db_path": target})
    return conn


class SQLiteAdapter:
    """SQLite 연결 래퍼

    DocumentStore 가 커밋 시점에 `transaction(immediate=True)` 로 쓰기 잠금을
    먼저 잡고 버전 검증과 쓰기를 한 번에 수행한다.

    사용 예시:
    ```python
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
        store = DocumentStore(db)
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def connect(self) -> None:
        if self._conn is None:
            self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        conn = self._require_conn()
        return await conn.execute(sql, parameters or ())

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        정상 종료 시 커밋, 예외(취소 포함) 시 롤백.

        Args:
            immediate: True면 BEGIN IMMEDIATE로 쓰기 잠금을 먼저 획득
        """
        conn = self._require_conn()
        if immediate:
            await conn.execute("BEGIN IMMEDIATE")

        try:
            yield conn
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise

    async def schema_version(self) -> int:
        """PRAGMA user_version (스키마 미초기화 시 0)"""
        row = await self.fetchone("PRAGMA user_version")
        return int(row[0]) if row else 0

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """documents 테이블 생성 (이미 최신 버전이면 건너뜀)

    모든 컬렉션은 documents 테이블 하나에 저장된다.
    하위 컬렉션(청구서 항목, 자산, 이동)은 parent_id로 상위 문서에 연결.
    data_json 은 엔티티 모델의 JSON 직렬화, version 은 낙관적 동시성 검사용.
    """
    current = await adapter.schema_version()
    if current >= SCHEMA_VERSION:
        return

    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS documents (
            seq          INTEGER PRIMARY KEY AUTOINCREMENT,
            collection   TEXT NOT NULL,
            doc_id       TEXT NOT NULL,
            parent_id    TEXT,
            owner_id     TEXT,

            data_json    TEXT NOT NULL,
            version      INTEGER NOT NULL DEFAULT 1,

            created_at   TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at   TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(collection, doc_id)
        )
    """)

    # 소유자 범위 조회 / 하위 컬렉션 조회
    await adapter.execute(
        "CREATE INDEX IF NOT EXISTS ix_documents_owner ON documents(collection, owner_id)"
    )
    await adapter.execute(
        "CREATE INDEX IF NOT EXISTS ix_documents_parent ON documents(collection, parent_id)"
    )

    await adapter.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    await adapter.commit()

    logger.info(f"스키마 초기화 완료: v{current} → v{SCHEMA_VERSION}")
