"""
계좌 라우트

계좌 CRUD 및 보관/복원
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from finance.ledger.accounts import AccountService
from web.dependencies import get_session, get_store
from web.models.requests import AccountCreateRequest, AccountUpdateRequest
from web.models.responses import entity_list, entity_response

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("")
async def list_accounts(
    include_investment: bool = Query(default=False),
    include_archived: bool = Query(default=False),
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """계좌 목록"""
    service = AccountService(store)
    return entity_list(await service.list_accounts(session, include_investment, include_archived))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_account(
    body: AccountCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    service = AccountService(store)
    account = await service.create_account(session, body.name, body.type, body.initial_balance)
    return entity_response(account)


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_response(await AccountService(store).get_account(session, account_id))


@router.patch("/{account_id}")
async def update_account(
    account_id: str,
    body: AccountUpdateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    service = AccountService(store)
    account = await service.update_account(session, account_id, body.name, body.type)
    return entity_response(account)


@router.post("/{account_id}/archive", status_code=status.HTTP_204_NO_CONTENT)
async def archive_account(
    account_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await AccountService(store).archive_account(session, account_id)


@router.post("/{account_id}/restore", status_code=status.HTTP_204_NO_CONTENT)
async def restore_account(
    account_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await AccountService(store).restore_account(session, account_id)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: str,
    confirm: bool = Query(default=False, description="잔액이 남은 계좌 삭제 확인"),
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await AccountService(store).delete_account(session, account_id, confirm=confirm)
