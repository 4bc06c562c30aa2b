"""
이체 라우트

계좌 간 이체 기록, 수정, 삭제
"""

from fastapi import APIRouter, Depends, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from finance.transfers.service import TransferService
from web.dependencies import get_session, get_store
from web.models.requests import TransferRequest, TransferUpdateRequest
from web.models.responses import entity_response

router = APIRouter(prefix="/api/transfers", tags=["Transfers"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def transfer_funds(
    body: TransferRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """출금 계좌 차감 + 입금 계좌 증가 + 이체 거래 기록 (원자적)"""
    service = TransferService(store)
    transfer = await service.transfer_funds(
        session,
        body.from_account_id,
        body.to_account_id,
        body.amount,
        body.date,
        body.description,
    )
    return entity_response(transfer)


@router.patch("/{transaction_id}")
async def update_transfer(
    transaction_id: str,
    body: TransferUpdateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    changes = body.model_dump(exclude_unset=True)
    return entity_response(await TransferService(store).update_transfer(session, transaction_id, changes))


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transfer(
    transaction_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await TransferService(store).delete_transfer(session, transaction_id)
