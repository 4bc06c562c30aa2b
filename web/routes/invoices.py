"""
카드 / 청구서 라우트

카드 CRUD, 카드 구매(할부), 청구서 조회/결제/선결제, 항목 수정/삭제
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from core.types import InvoiceStatus
from finance.invoices.cards import CardService
from finance.invoices.service import InvoiceService, LineItemDraft
from web.dependencies import get_session, get_store
from web.models.requests import (
    AdvancePaymentRequest,
    CardCreateRequest,
    CardPurchaseRequest,
    CardUpdateRequest,
    InvoicePaymentRequest,
    LineItemUpdateRequest,
)
from web.models.responses import entity_list, entity_response

router = APIRouter(prefix="/api", tags=["Invoices"])


# =========================================================================
# 카드
# =========================================================================


@router.get("/cards")
async def list_cards(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await CardService(store).list_cards(session))


@router.post("/cards", status_code=status.HTTP_201_CREATED)
async def add_card(
    body: CardCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    card = await CardService(store).add_card(
        session, body.name, body.closing_day, body.due_day, body.credit_limit
    )
    return entity_response(card)


@router.patch("/cards/{card_id}")
async def update_card(
    card_id: str,
    body: CardUpdateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    changes = body.model_dump(exclude_unset=True)
    return entity_response(await CardService(store).update_card(session, card_id, changes))


@router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    card_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await CardService(store).delete_card(session, card_id)


@router.post("/cards/{card_id}/purchases", status_code=status.HTTP_201_CREATED)
async def add_card_purchase(
    card_id: str,
    body: CardPurchaseRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """카드 구매 (구매일과 마감일로 청구 기간 결정, 할부는 회차별 청구서)"""
    draft = LineItemDraft(
        amount=body.amount,
        purchase_date=body.purchase_date,
        category=body.category,
        description=body.description,
        splits=tuple(s.model_dump() for s in body.splits),
    )
    items = await InvoiceService(store).add_card_purchase(session, card_id, draft, body.installments)
    return entity_list(items)


# =========================================================================
# 청구서
# =========================================================================


@router.get("/invoices")
async def list_invoices(
    card_id: str | None = Query(default=None),
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await InvoiceService(store).list_invoices(session, card_id, status_filter))


@router.post("/invoices/close-overdue")
async def close_overdue_invoices(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """납부일이 지난 OPEN 청구서 마감"""
    return {"closed": await InvoiceService(store).close_overdue_invoices(session)}


@router.get("/invoices/{invoice_id}")
async def get_invoice(
    invoice_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    service = InvoiceService(store)
    invoice = await service.get_invoice(session, invoice_id)
    items = await service.list_line_items(session, invoice_id)
    return {**entity_response(invoice), "items": entity_list(items)}


@router.post("/invoices/{invoice_id}/pay")
async def pay_invoice(
    invoice_id: str,
    body: InvoicePaymentRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """청구서 결제 (정산 지출 거래 생성, 합계가 0 이하면 상태만 변경)"""
    settlement = await InvoiceService(store).pay_invoice(
        session, invoice_id, body.account_id, body.payment_date
    )
    return {"transaction": entity_response(settlement) if settlement else None}


@router.post("/invoices/{invoice_id}/advance", status_code=status.HTTP_201_CREATED)
async def make_advance_payment(
    invoice_id: str,
    body: AdvancePaymentRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """선결제 (청구서 합계 감소 + 계좌 출금)"""
    settlement = await InvoiceService(store).make_advance_payment(
        session, invoice_id, body.amount, body.account_id, body.payment_date
    )
    return entity_response(settlement)


@router.patch("/invoices/{invoice_id}/items/{item_id}")
async def update_line_item(
    invoice_id: str,
    item_id: str,
    body: LineItemUpdateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """항목 수정 (구매일이 바뀌면 다른 청구서로 이동)"""
    changes = body.model_dump(exclude_unset=True)
    item = await InvoiceService(store).update_line_item(session, invoice_id, item_id, changes)
    return entity_response(item)


@router.delete("/invoices/{invoice_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line_item(
    invoice_id: str,
    item_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await InvoiceService(store).delete_line_item(session, invoice_id, item_id)
