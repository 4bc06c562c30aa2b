"""
거래 라우트

수입/지출 거래 기록, 수정, 삭제, 분할, 월별 요약
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic_core import to_jsonable_python

from adapters.interfaces import IDocumentStore
from core.session import Session
from core.types import TransactionKind
from finance.ledger.transactions import LedgerService, TransactionDraft
from finance.transfers.splits import SplitService
from web.dependencies import get_session, get_store
from web.models.requests import (
    SplitTransactionRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import entity_list, entity_response

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get("")
async def list_transactions(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    account_id: str | None = Query(default=None),
    kind: TransactionKind | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """거래 목록 (최신순)"""
    service = LedgerService(store)
    items = await service.list_transactions(session, start, end, account_id, kind, limit)
    return entity_list(items)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """거래 기록 + 계좌 잔액 반영"""
    draft = TransactionDraft(
        amount=body.amount,
        date=body.date,
        kind=body.kind,
        category=body.category,
        account_id=body.account_id,
        description=body.description,
        subcategory=body.subcategory,
        payment_method=body.payment_method,
        tags=tuple(body.tags),
        splits=tuple(s.model_dump() for s in body.splits),
    )
    return entity_response(await LedgerService(store).apply_transaction(session, draft))


@router.get("/summary/{year}/{month}")
async def monthly_summary(
    year: int,
    month: int,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """월별 수입/지출 요약"""
    summary = await LedgerService(store).monthly_summary(session, year, month)
    return to_jsonable_python(summary)


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_response(await LedgerService(store).get_transaction(session, transaction_id))


@router.patch("/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    body: TransactionUpdateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """거래 수정 (보낸 필드만)"""
    changes = body.model_dump(exclude_unset=True)
    updated = await LedgerService(store).update_transaction(session, transaction_id, changes)
    return entity_response(updated)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await LedgerService(store).delete_transaction(session, transaction_id)


@router.put("/{transaction_id}/splits")
async def split_transaction(
    transaction_id: str,
    body: SplitTransactionRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """분할 집합 교체 (잔액 변화 없음)"""
    splits = [s.model_dump() for s in body.splits]
    return entity_response(await SplitService(store).split_transaction(session, transaction_id, splits))
