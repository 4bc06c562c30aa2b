"""
예산 / 카테고리 라우트
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.interfaces import IDocumentStore
from core.session import Session
from core.types import TransactionKind
from finance.budgets.categories import CategoryService
from finance.budgets.service import BudgetService
from web.dependencies import get_session, get_store
from web.models.requests import BudgetRequest, CategoryCreateRequest
from web.models.responses import BudgetUsageResponse, entity_list, entity_response

router = APIRouter(prefix="/api", tags=["Budgets"])


@router.get("/budgets")
async def list_budgets(
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await BudgetService(store).list_budgets(session))


@router.put("/budgets")
async def set_budget(
    body: BudgetRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    """예산 설정 (카테고리당 1개, 덮어쓰기)"""
    return entity_response(await BudgetService(store).set_budget(session, body.category, body.amount))


@router.delete("/budgets/{category}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    category: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await BudgetService(store).delete_budget(session, category)


@router.get("/budgets/usage/{year}/{month}", response_model=list[BudgetUsageResponse])
async def budget_usage(
    year: int,
    month: int,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    usage = await BudgetService(store).budget_usage(session, year, month)
    return [BudgetUsageResponse.from_usage(u) for u in usage]


@router.get("/categories")
async def list_categories(
    kind: TransactionKind | None = Query(default=None),
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_list(await CategoryService(store).list_categories(session, kind))


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def add_category(
    body: CategoryCreateRequest,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    return entity_response(await CategoryService(store).add_category(session, body.name, body.kind))


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    session: Session = Depends(get_session),
    store: IDocumentStore = Depends(get_store),
):
    await CategoryService(store).delete_category(session, category_id)
