"""
부채 라우트

부채 등록/조회/삭제, 할부 상환
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from core.types import DebtStatus
from finance.debts.service import DebtDraft, DebtService
from web.dependencies import get_session, get_store
from web.models.requests import DebtCreateRequest, DebtPaymentRequest
from web.models.responses import entity_list, entity_response

router = APIRouter(prefix="/api", tags=["Debts"])


@router.get("/debts")
async def list_debts(
    status_filter: DebtStatus | None = Query(default=None, alias="status"),
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """부채 목록 (진행 중 먼저) + 남은 금액 합계"""
    service = DebtService(store)
    return {
        "debts": entity_list(await service.list_debts(session, status_filter)),
        "outstanding": str(await service.outstanding_balance(session)),
    }


@router.post("/debts", status_code=status.HTTP_201_CREATED)
async def add_debt(
    body: DebtCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    debt = await DebtService(store).add_debt(session, DebtDraft(**body.model_dump()))
    return entity_response(debt)


@router.get("/debts/{debt_id}")
async def get_debt(
    debt_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_response(await DebtService(store).get_debt(session, debt_id))


@router.post("/debts/{debt_id}/pay")
async def pay_installment(
    debt_id: str,
    body: DebtPaymentRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """할부 1회 상환 (계좌 자동 이체 부채는 지출 거래 생성)"""
    payment = await DebtService(store).pay_installment(
        session, debt_id, body.account_id, body.payment_date
    )
    return {
        "debt": entity_response(payment.debt),
        "amount": str(payment.amount),
        "transaction": entity_response(payment.transaction) if payment.transaction else None,
    }


@router.delete("/debts/{debt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_debt(
    debt_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await DebtService(store).delete_debt(session, debt_id)
