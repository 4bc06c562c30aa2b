"""
pytest 공통 fixture 정의

메모리 SQLite 문서 저장소, 세션, 테스트용 settings.yaml
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.document_store import DocumentStore
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings
from core.session import Session


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성 (sandbox 모드)"""
    settings_content = """# 테스트용 settings.yaml
mode: sandbox
timezone_offset_hours: -3

web:
  secret_key: "test_jwt_secret_key_xyz"
  host: 0.0.0.0
  port: 9000
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_production(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성 (production 모드, DB 경로 지정)"""
    settings_content = f"""mode: production
db_path: {(temp_dir / "prod.db").as_posix()}

web:
  secret_key: "prod_jwt_secret_key_xyz"
"""
    settings_path = temp_dir / "settings_prod.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 settings.yaml 파일 생성"""
    settings_content = """mode: testnet

web:
  secret_key: "jwt_secret"
"""
    settings_path = temp_dir / "settings_invalid.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def reset_settings():
    """Settings 싱글턴 초기화 (테스트 전후)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def adapter() -> SQLiteAdapter:
    """스키마가 초기화된 메모리 DB"""
    db = SQLiteAdapter(":memory:")
    await db.connect()
    await init_schema(db)
    yield db
    await db.close()


@pytest.fixture
def store(adapter: SQLiteAdapter) -> DocumentStore:
    """관리자 범위 문서 저장소"""
    return DocumentStore(adapter)


@pytest.fixture
def session() -> Session:
    return Session(user_id="user-1")


@pytest.fixture
def other_session() -> Session:
    return Session(user_id="user-2")
