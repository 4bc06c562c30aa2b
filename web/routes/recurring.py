"""
반복 거래 라우트
"""

from datetime import timezone

from fastapi import APIRouter, Depends, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from finance.recurring.materializer import RecurringService
from web.dependencies import get_session, get_store, get_tz
from web.models.requests import RecurringCreateRequest, RecurringUpdateRequest
from web.models.responses import entity_list, entity_response

router = APIRouter(prefix="/api/recurring", tags=["Recurring"])


@router.get("")
async def list_recurring(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
    tz: timezone = Depends(get_tz),
):
    service = RecurringService(store, tz)
    definitions = await service.list_recurring(session)
    return [
        {**entity_response(d), "state": service.state_of(d).value}
        for d in definitions
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_recurring(
    body: RecurringCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    definition = await RecurringService(store).add_recurring(session, **body.model_dump())
    return entity_response(definition)


@router.patch("/{recurring_id}")
async def update_recurring(
    recurring_id: str,
    body: RecurringUpdateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    changes = body.model_dump(exclude_unset=True)
    return entity_response(await RecurringService(store).update_recurring(session, recurring_id, changes))


@router.delete("/{recurring_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring(
    recurring_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await RecurringService(store).delete_recurring(session, recurring_id)


@router.post("/process")
async def process_due(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
    tz: timezone = Depends(get_tz),
):
    """이번 달 실행일이 지난 정의 실체화"""
    return {"materialized": await RecurringService(store, tz).process_due(session)}
