"""
정합성 점검 라우트

GET  /api/reconcile          - drift 목록
POST /api/reconcile/accounts - 계좌 잔액 복구
"""

from fastapi import APIRouter, Depends

from adapters.interfaces import IDocumentStore
from core.session import Session
from finance.reconciler.reconciler import Reconciler
from web.dependencies import get_session, get_store
from web.models.responses import DriftResponse

router = APIRouter(prefix="/api/reconcile", tags=["Reconcile"])


@router.get("", response_model=list[DriftResponse])
async def check(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    drifts = await Reconciler(store).check(session)
    return [DriftResponse.from_drift(d) for d in drifts]


@router.post("/accounts")
async def repair_account_balances(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return {"repaired": await Reconciler(store).repair_account_balances(session)}
