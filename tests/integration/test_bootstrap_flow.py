"""
세션 부트스트랩 통합 테스트
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from adapters.db.document_store import DocumentStore
from core.constants import Collections
from core.domain.models import Account, CreditCard
from core.session import AuthStateStream, AuthUser, Session
from core.types import AccountType, InvoiceStatus, TransactionKind
from finance.bootstrap import SessionBootstrapper
from finance.budgets import CategoryService
from finance.invoices import InvoiceService, LineItemDraft
from finance.ledger import AccountService, LedgerService
from finance.recurring import RecurringService

FIXED_NOW = datetime(2026, 3, 25, 15, tzinfo=timezone.utc)


@pytest.fixture
def bootstrapper(store: DocumentStore) -> SessionBootstrapper:
    return SessionBootstrapper(store, clock=lambda: FIXED_NOW)


class TestInitializeUser:
    """신규 사용자 초기화"""

    @pytest.mark.asyncio
    async def test_creates_defaults(
        self,
        bootstrapper: SessionBootstrapper,
        store: DocumentStore,
        categories: CategoryService,
        accounts: AccountService,
        session: Session,
    ) -> None:
        created = await bootstrapper.initialize_user(session, AuthUser(uid=session.user_id, email="a@b.c"))

        assert created is True
        profile = await store.for_owner(session.user_id).get(Collections.USERS, session.user_id)
        assert profile.data["email"] == "a@b.c"
        assert len(await categories.list_categories(session, TransactionKind.REVENUE)) == 5
        assert len(await categories.list_categories(session, TransactionKind.EXPENSE)) == 10
        [wallet] = await accounts.list_accounts(session)
        assert wallet.name == "Carteira"
        assert wallet.type == AccountType.WALLET

    @pytest.mark.asyncio
    async def test_idempotent(
        self, bootstrapper: SessionBootstrapper, categories: CategoryService, session: Session
    ) -> None:
        assert await bootstrapper.initialize_user(session) is True
        assert await bootstrapper.initialize_user(session) is False

        assert len(await categories.list_categories(session)) == 15

    @pytest.mark.asyncio
    async def test_existing_accounts_skip_wallet(
        self,
        bootstrapper: SessionBootstrapper,
        accounts: AccountService,
        session: Session,
        checking: Account,
    ) -> None:
        await bootstrapper.initialize_user(session)

        assert [a.id for a in await accounts.list_accounts(session)] == [checking.id]


class TestPrepare:
    """로그인 시 준비 작업"""

    @pytest.mark.asyncio
    async def test_runs_all_steps(
        self,
        bootstrapper: SessionBootstrapper,
        invoices: InvoiceService,
        recurring: RecurringService,
        ledger: LedgerService,
        session: Session,
        card: CreditCard,
        checking: Account,
    ) -> None:
        [item] = await invoices.add_card_purchase(
            session, card.id, LineItemDraft(Decimal("10"), date(2026, 3, 5), "Lazer")
        )
        await recurring.add_recurring(
            session, "Aluguel", Decimal("800"), 5, TransactionKind.EXPENSE, "Moradia",
            account_id=checking.id,
        )

        result = await bootstrapper.prepare(session)

        assert result == {"initialized": 1, "closed_invoices": 1, "materialized": 1}
        assert (await invoices.get_invoice(session, item.invoice_id)).status == InvoiceStatus.CLOSED
        assert len(await ledger.list_transactions(session)) == 1

        again = await bootstrapper.prepare(session)
        assert again == {"initialized": 0, "closed_invoices": 0, "materialized": 0}

    @pytest.mark.asyncio
    async def test_auth_stream(
        self,
        bootstrapper: SessionBootstrapper,
        accounts: AccountService,
        session: Session,
    ) -> None:
        stream = AuthStateStream()
        bootstrapper.attach(stream)

        await stream.publish(AuthUser(uid=session.user_id))
        await stream.publish(None)

        assert stream.current_user is None
        assert [a.name for a in await accounts.list_accounts(session)] == ["Carteira"]

    @pytest.mark.asyncio
    async def test_subscribe_after_login(
        self,
        bootstrapper: SessionBootstrapper,
        accounts: AccountService,
        session: Session,
    ) -> None:
        """이미 로그인된 스트림에 붙으면 즉시 준비"""
        stream = AuthStateStream()
        await stream.publish(AuthUser(uid=session.user_id))

        bootstrapper.attach(stream)
        await stream.drain()

        assert len(await accounts.list_accounts(session)) == 1

    @pytest.mark.asyncio
    async def test_detach(
        self,
        bootstrapper: SessionBootstrapper,
        accounts: AccountService,
        session: Session,
    ) -> None:
        stream = AuthStateStream()
        bootstrapper.attach(stream)
        bootstrapper.detach()

        await stream.publish(AuthUser(uid=session.user_id))

        assert await accounts.list_accounts(session) == []

    @pytest.mark.parametrize(
        "tz, expected",
        [
            (timezone(timedelta(hours=9)), date(2026, 4, 1)),
            (timezone(timedelta(hours=-3)), date(2026, 3, 1)),
        ],
    )
    @pytest.mark.asyncio
    async def test_calendar_follows_configured_tz(
        self,
        store: DocumentStore,
        recurring: RecurringService,
        ledger: LedgerService,
        session: Session,
        checking: Account,
        tz: timezone,
        expected: date,
    ) -> None:
        """같은 UTC 시각이라도 설정 타임존의 날짜로 실행일을 판단"""
        await recurring.add_recurring(
            session, "Academia", Decimal("90"), 1, TransactionKind.EXPENSE, "Saúde",
            account_id=checking.id,
        )
        bootstrapper = SessionBootstrapper(
            store, clock=lambda: datetime(2026, 3, 31, 20, tzinfo=timezone.utc), tz=tz
        )

        result = await bootstrapper.prepare(session)

        assert result["materialized"] == 1
        [tx] = await ledger.list_transactions(session)
        assert tx.date == expected
