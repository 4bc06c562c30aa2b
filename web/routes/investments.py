"""
투자 라우트

포트폴리오 / 자산 / 이동 기록 / 배당 요약
"""

from fastapi import APIRouter, Depends, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from finance.investments.dividends import InvestmentReportService
from finance.investments.engine import DividendDraft, InvestmentService, MovementDraft
from finance.investments.portfolios import PortfolioService
from web.dependencies import get_session, get_store
from web.models.requests import (
    AssetCreateRequest,
    DividendRequest,
    MovementRequest,
    PortfolioCreateRequest,
)
from web.models.responses import DividendSummaryResponse, PositionResponse, entity_list, entity_response

router = APIRouter(prefix="/api", tags=["Investments"])


# =========================================================================
# 포트폴리오 / 자산
# =========================================================================


@router.get("/portfolios")
async def list_portfolios(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await PortfolioService(store).list_portfolios(session))


@router.post("/portfolios", status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    body: PortfolioCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """포트폴리오 생성 (OWN 이면 투자 계좌 함께 생성)"""
    portfolio = await PortfolioService(store).create_portfolio(
        session, body.name, body.ownership_type, body.description
    )
    return entity_response(portfolio)


@router.delete("/portfolios/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio(
    portfolio_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await PortfolioService(store).delete_portfolio(session, portfolio_id)


@router.get("/portfolios/{portfolio_id}/assets")
async def list_assets(
    portfolio_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await PortfolioService(store).list_assets(session, portfolio_id))


@router.post("/portfolios/{portfolio_id}/assets", status_code=status.HTTP_201_CREATED)
async def add_asset(
    portfolio_id: str,
    body: AssetCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    asset = await PortfolioService(store).add_asset(session, portfolio_id, **body.model_dump())
    return entity_response(asset)


@router.delete("/portfolios/{portfolio_id}/assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(
    portfolio_id: str,
    asset_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await PortfolioService(store).delete_asset(session, portfolio_id, asset_id)


# =========================================================================
# 이동
# =========================================================================


@router.get("/portfolios/{portfolio_id}/assets/{asset_id}/movements")
async def list_movements(
    portfolio_id: str,
    asset_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await InvestmentService(store).list_movements(session, portfolio_id, asset_id))


@router.post("/portfolios/{portfolio_id}/assets/{asset_id}/movements", status_code=status.HTTP_201_CREATED)
async def record_movement(
    portfolio_id: str,
    asset_id: str,
    body: MovementRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """매수/매도 기록 (OWN 포트폴리오는 현금 거래 함께 기록)"""
    draft = MovementDraft(
        kind=body.kind,
        quantity=body.quantity,
        price_per_unit=body.price_per_unit,
        date=body.date,
    )
    movement = await InvestmentService(store).record_movement(session, portfolio_id, asset_id, draft)
    return entity_response(movement)


@router.post("/portfolios/{portfolio_id}/assets/{asset_id}/dividends", status_code=status.HTTP_201_CREATED)
async def record_dividend(
    portfolio_id: str,
    asset_id: str,
    body: DividendRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    draft = DividendDraft(
        payment_date=body.payment_date,
        value_per_unit=body.value_per_unit,
        total_amount=body.total_amount,
    )
    movement = await InvestmentService(store).record_dividend(session, portfolio_id, asset_id, draft)
    return entity_response(movement)


@router.delete(
    "/portfolios/{portfolio_id}/assets/{asset_id}/movements/{movement_id}",
    response_model=PositionResponse,
)
async def delete_movement(
    portfolio_id: str,
    asset_id: str,
    movement_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """이동 삭제 + 연결 거래 되돌림 + 전체 재계산"""
    position = await InvestmentService(store).delete_movement_and_recalculate(
        session, portfolio_id, asset_id, movement_id
    )
    return PositionResponse.from_position(position)


# =========================================================================
# 조회
# =========================================================================


@router.get("/investments/dividends")
async def list_dividends(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await InvestmentReportService(store).list_dividends(session))


@router.get("/investments/dividends/summary", response_model=DividendSummaryResponse)
async def dividend_summary(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    summary = await InvestmentReportService(store).dividend_summary(session)
    return DividendSummaryResponse.from_summary(summary)


@router.get("/investments/transactions")
async def list_investment_transactions(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await InvestmentReportService(store).list_investment_transactions(session))
