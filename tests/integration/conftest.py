"""
통합 테스트 fixture

메모리 문서 저장소 위의 서비스와 자주 쓰는 계좌/카드.
"""

from decimal import Decimal
from typing import Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.document_store import DocumentStore
from core.constants import Collections
from core.domain.models import Account, CreditCard
from core.session import Session
from core.types import AccountType
from finance.budgets import BudgetService, CategoryService
from finance.debts import DebtService
from finance.investments import InvestmentReportService, InvestmentService, PortfolioService
from finance.invoices import CardService, InvoiceService
from finance.ledger import AccountService, LedgerService
from finance.reconciler import Reconciler
from finance.recurring import RecurringService
from finance.transfers import SplitService, TransferService


@pytest.fixture
def accounts(store: DocumentStore) -> AccountService:
    return AccountService(store)


@pytest.fixture
def ledger(store: DocumentStore) -> LedgerService:
    return LedgerService(store)


@pytest.fixture
def transfers(store: DocumentStore) -> TransferService:
    return TransferService(store)


@pytest.fixture
def splits(store: DocumentStore) -> SplitService:
    return SplitService(store)


@pytest.fixture
def cards(store: DocumentStore) -> CardService:
    return CardService(store)


@pytest.fixture
def invoices(store: DocumentStore) -> InvoiceService:
    return InvoiceService(store)


@pytest.fixture
def recurring(store: DocumentStore) -> RecurringService:
    return RecurringService(store)


@pytest.fixture
def portfolios(store: DocumentStore) -> PortfolioService:
    return PortfolioService(store)


@pytest.fixture
def investments(store: DocumentStore) -> InvestmentService:
    return InvestmentService(store)


@pytest.fixture
def reports(store: DocumentStore) -> InvestmentReportService:
    return InvestmentReportService(store)


@pytest.fixture
def budgets(store: DocumentStore) -> BudgetService:
    return BudgetService(store)


@pytest.fixture
def categories(store: DocumentStore) -> CategoryService:
    return CategoryService(store)


@pytest.fixture
def debts(store: DocumentStore) -> DebtService:
    return DebtService(store)


@pytest.fixture
def reconciler(store: DocumentStore) -> Reconciler:
    return Reconciler(store)


@pytest_asyncio.fixture
async def checking(accounts: AccountService, session: Session) -> Account:
    """잔액 1000 입출금 계좌"""
    return await accounts.create_account(session, "Nubank", AccountType.CHECKING, Decimal("1000"))


@pytest_asyncio.fixture
async def savings(accounts: AccountService, session: Session) -> Account:
    """잔액 200 저축 계좌"""
    return await accounts.create_account(session, "Poupança", AccountType.SAVINGS, Decimal("200"))


@pytest_asyncio.fixture
async def card(cards: CardService, session: Session) -> CreditCard:
    """마감 10일, 납부 20일 카드"""
    return await cards.add_card(session, "Visa", closing_day=10, due_day=20, credit_limit=Decimal("5000"))


@pytest.fixture
def balance_of(store: DocumentStore, session: Session) -> Callable[[str], Awaitable[Decimal]]:
    """저장된 계좌 current_balance 조회"""

    async def _balance(account_id: str) -> Decimal:
        doc = await store.for_owner(session.user_id).get(Collections.ACCOUNTS, account_id)
        return Decimal(doc.data["current_balance"])

    return _balance
