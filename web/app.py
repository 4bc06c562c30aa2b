"""
FastAPI 애플리케이션

라우터 등록, 원장 오류 → HTTP 응답 변환, 앱 설정.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.document_store import DocumentStore
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.interfaces import IDocumentStore
from core.config.loader import get_settings
from core.errors import ConsistencyError, LedgerError, NotFoundError, StoreError, ValidationError
from core.logging import setup_logging
from core.utils.timezone import BRT
from finance.bootstrap import SessionBootstrapper
from web.routes import (
    accounts,
    budgets,
    debts,
    health,
    investments,
    invoices,
    reconcile,
    recurring,
    session,
    transactions,
    transfers,
)

logger = logging.getLogger(__name__)

# StoreError 코드 → HTTP 상태
STORE_ERROR_STATUS = {
    StoreError.PERMISSION_DENIED: 403,
    StoreError.FAILED_PRECONDITION: 503,
    StoreError.UNAVAILABLE: 503,
}


def error_status(error: LedgerError) -> int:
    """원장 오류 → HTTP 상태 코드"""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConsistencyError):
        return 409
    if isinstance(error, StoreError):
        return STORE_ERROR_STATUS.get(error.code, 503)
    return 500


def _attach_store(app: FastAPI, store: IDocumentStore, tz: timezone) -> None:
    app.state.store = store
    app.state.tz = tz
    app.state.bootstrapper = SessionBootstrapper(store, tz=tz)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    저장소가 주입되지 않았으면 설정의 DB 를 열고 스키마를 초기화한다.
    """
    if getattr(app.state, "store", None) is not None:
        yield
        return

    setup_logging("web")
    settings = get_settings()
    app.state.mode = settings.mode
    app.state.secret_key = settings.web_secret_key

    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
        _attach_store(app, DocumentStore(db), settings.tz)
        logger.info(f"Web 시작: mode={settings.mode.value}, db={settings.db_path}")
        yield
        app.state.store = None

    logger.info("Web 종료")


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """원장 오류 응답 {"error", "message", "retryable"}"""
    status_code = error_status(exc)
    error = exc.code if isinstance(exc, StoreError) else type(exc).__name__
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} 거부 ({status_code}): {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": exc.user_message, "retryable": exc.retryable},
    )


def create_app(
    store: IDocumentStore | None = None,
    secret_key: str | None = None,
    tz: timezone = BRT,
) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        store: 미리 준비한 문서 저장소 (테스트용, None이면 lifespan 에서 생성)
        secret_key: JWT 비밀키 (store 주입 시 필요)
        tz: 주입한 store 에 쓸 달력 타임존 (lifespan 에서는 설정 값)
    """
    app = FastAPI(
        title="FamLedger API",
        description="가계부 원장 정합성 엔진 API",
        version=health.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = None
    app.state.mode = None
    app.state.tz = None
    app.state.secret_key = secret_key
    if store is not None:
        _attach_store(app, store, tz)

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(session.router)
    app.include_router(accounts.router)
    app.include_router(transactions.router)
    app.include_router(transfers.router)
    app.include_router(invoices.router)
    app.include_router(recurring.router)
    app.include_router(investments.router)
    app.include_router(budgets.router)
    app.include_router(debts.router)
    app.include_router(reconcile.router)

    return app


app = create_app()
