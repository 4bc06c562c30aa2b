"""
이체 / 분할 통합 테스트
"""

from datetime import date
from decimal import Decimal

import pytest

from core.domain.models import Account
from core.errors import NotFoundError, ValidationError
from core.session import Session
from core.types import TransactionKind
from finance.ledger import LedgerService, TransactionDraft
from finance.reconciler import Reconciler
from finance.transfers import SplitService, TransferService


class TestTransferFunds:
    """계좌 간 이체"""

    @pytest.mark.asyncio
    async def test_moves_balance(
        self,
        transfers: TransferService,
        session: Session,
        checking: Account,
        savings: Account,
        balance_of,
    ) -> None:
        """A 500, B 200 에서 A→B 100 → A 400, B 300"""
        await transfers.transfer_funds(session, checking.id, savings.id, Decimal("500"), date(2026, 3, 1))
        await transfers.transfer_funds(session, savings.id, checking.id, Decimal("400"), date(2026, 3, 1))
        assert await balance_of(checking.id) == Decimal("900")

        tx = await transfers.transfer_funds(
            session, savings.id, checking.id, Decimal("100"), date(2026, 3, 2), "Reserva"
        )

        assert tx.kind == TransactionKind.TRANSFER
        assert tx.description == "Reserva"
        assert await balance_of(checking.id) == Decimal("1000")
        assert await balance_of(savings.id) == Decimal("200")

    @pytest.mark.asyncio
    async def test_scenario_balances(
        self,
        transfers: TransferService,
        session: Session,
        checking: Account,
        savings: Account,
        balance_of,
    ) -> None:
        await transfers.transfer_funds(session, checking.id, savings.id, Decimal("500"), date(2026, 3, 1))
        assert await balance_of(checking.id) == Decimal("500")
        assert await balance_of(savings.id) == Decimal("700")

        await transfers.transfer_funds(session, checking.id, savings.id, Decimal("100"), date(2026, 3, 1))

        assert await balance_of(checking.id) == Decimal("400")
        assert await balance_of(savings.id) == Decimal("800")

    @pytest.mark.asyncio
    async def test_same_account_rejected(
        self, transfers: TransferService, ledger: LedgerService, session: Session, checking: Account, balance_of
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await transfers.transfer_funds(session, checking.id, checking.id, Decimal("10"), date(2026, 3, 1))

        assert exc_info.value.user_message == "출금 계좌와 입금 계좌가 같습니다"
        assert await balance_of(checking.id) == Decimal("1000")
        assert await ledger.list_transactions(session) == []

    @pytest.mark.asyncio
    async def test_non_positive_rejected(
        self, transfers: TransferService, session: Session, checking: Account, savings: Account
    ) -> None:
        with pytest.raises(ValidationError):
            await transfers.transfer_funds(session, checking.id, savings.id, Decimal("0"), date(2026, 3, 1))

    @pytest.mark.asyncio
    async def test_missing_destination(
        self, transfers: TransferService, session: Session, checking: Account, balance_of
    ) -> None:
        with pytest.raises(NotFoundError):
            await transfers.transfer_funds(session, checking.id, "missing", Decimal("10"), date(2026, 3, 1))

        assert await balance_of(checking.id) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_listed_for_both_accounts(
        self,
        transfers: TransferService,
        ledger: LedgerService,
        session: Session,
        checking: Account,
        savings: Account,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("10"), date(2026, 3, 1))

        assert [t.id for t in await ledger.list_transactions(session, account_id=checking.id)] == [tx.id]
        assert [t.id for t in await ledger.list_transactions(session, account_id=savings.id)] == [tx.id]


class TestUpdateTransfer:
    @pytest.mark.asyncio
    async def test_amount_change(
        self,
        transfers: TransferService,
        session: Session,
        checking: Account,
        savings: Account,
        balance_of,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("100"), date(2026, 3, 1))

        await transfers.update_transfer(session, tx.id, {"amount": Decimal("250")})

        assert await balance_of(checking.id) == Decimal("750")
        assert await balance_of(savings.id) == Decimal("450")

    @pytest.mark.asyncio
    async def test_swap_direction(
        self,
        transfers: TransferService,
        reconciler: Reconciler,
        session: Session,
        checking: Account,
        savings: Account,
        balance_of,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("100"), date(2026, 3, 1))

        await transfers.update_transfer(
            session, tx.id, {"from_account_id": savings.id, "to_account_id": checking.id}
        )

        assert await balance_of(checking.id) == Decimal("1100")
        assert await balance_of(savings.id) == Decimal("100")
        assert await reconciler.check(session) == []

    @pytest.mark.asyncio
    async def test_same_account_after_update(
        self,
        transfers: TransferService,
        session: Session,
        checking: Account,
        savings: Account,
        balance_of,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("100"), date(2026, 3, 1))

        with pytest.raises(ValidationError):
            await transfers.update_transfer(session, tx.id, {"to_account_id": checking.id})

        assert await balance_of(checking.id) == Decimal("900")

    @pytest.mark.asyncio
    async def test_not_a_transfer(
        self, transfers: TransferService, ledger: LedgerService, session: Session, checking: Account
    ) -> None:
        expense = await ledger.apply_transaction(
            session,
            TransactionDraft(
                amount=Decimal("5"),
                date=date(2026, 3, 1),
                kind=TransactionKind.EXPENSE,
                category="Lazer",
                account_id=checking.id,
            ),
        )

        with pytest.raises(ValidationError):
            await transfers.update_transfer(session, expense.id, {"amount": Decimal("1")})

    @pytest.mark.asyncio
    async def test_ledger_update_rejects_transfer(
        self,
        transfers: TransferService,
        ledger: LedgerService,
        session: Session,
        checking: Account,
        savings: Account,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("100"), date(2026, 3, 1))

        with pytest.raises(ValidationError):
            await ledger.update_transaction(session, tx.id, {"amount": Decimal("1")})


class TestDeleteTransfer:
    @pytest.mark.asyncio
    async def test_restores_both(
        self,
        transfers: TransferService,
        session: Session,
        checking: Account,
        savings: Account,
        balance_of,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("100"), date(2026, 3, 1))

        await transfers.delete_transfer(session, tx.id)

        assert await balance_of(checking.id) == Decimal("1000")
        assert await balance_of(savings.id) == Decimal("200")


class TestSplits:
    """거래 분할"""

    async def _expense(self, ledger: LedgerService, session: Session, account_id: str) -> str:
        tx = await ledger.apply_transaction(
            session,
            TransactionDraft(
                amount=Decimal("90"),
                date=date(2026, 3, 5),
                kind=TransactionKind.EXPENSE,
                category="Supermercado",
                account_id=account_id,
            ),
        )
        return tx.id

    @pytest.mark.asyncio
    async def test_exact_sum_accepted(
        self, ledger: LedgerService, splits: SplitService, session: Session, checking: Account, balance_of
    ) -> None:
        """90 = 30 + 30 + 30"""
        tx_id = await self._expense(ledger, session, checking.id)

        updated = await splits.split_transaction(
            session,
            tx_id,
            [
                {"category": "Alimentação", "amount": "30"},
                {"category": "Lazer", "amount": "30"},
                {"category": "Saúde", "amount": "30"},
            ],
        )

        assert [s.category for s in updated.splits] == ["Alimentação", "Lazer", "Saúde"]
        stored = await ledger.get_transaction(session, tx_id)
        assert sum(s.amount for s in stored.splits) == Decimal("90")
        assert await balance_of(checking.id) == Decimal("910")

    @pytest.mark.asyncio
    async def test_mismatch_rejected(
        self, ledger: LedgerService, splits: SplitService, session: Session, checking: Account
    ) -> None:
        """30 + 30 + 20 ≠ 90"""
        tx_id = await self._expense(ledger, session, checking.id)

        with pytest.raises(ValidationError) as exc_info:
            await splits.split_transaction(
                session,
                tx_id,
                [
                    {"category": "Alimentação", "amount": "30"},
                    {"category": "Lazer", "amount": "30"},
                    {"category": "Saúde", "amount": "20"},
                ],
            )

        assert "합" in exc_info.value.user_message
        assert (await ledger.get_transaction(session, tx_id)).splits == []

    @pytest.mark.asyncio
    async def test_clear_splits(
        self, ledger: LedgerService, splits: SplitService, session: Session, checking: Account
    ) -> None:
        tx_id = await self._expense(ledger, session, checking.id)
        await splits.split_transaction(session, tx_id, [{"category": "Lazer", "amount": "90"}])

        await splits.split_transaction(session, tx_id, [])

        assert (await ledger.get_transaction(session, tx_id)).splits == []

    @pytest.mark.asyncio
    async def test_transfer_cannot_split(
        self,
        transfers: TransferService,
        splits: SplitService,
        session: Session,
        checking: Account,
        savings: Account,
    ) -> None:
        tx = await transfers.transfer_funds(session, checking.id, savings.id, Decimal("90"), date(2026, 3, 1))

        with pytest.raises(ValidationError):
            await splits.split_transaction(session, tx.id, [{"category": "Lazer", "amount": "90"}])

    @pytest.mark.asyncio
    async def test_category_totals_expand_splits(
        self, ledger: LedgerService, splits: SplitService, session: Session, checking: Account
    ) -> None:
        tx_id = await self._expense(ledger, session, checking.id)
        await splits.split_transaction(
            session,
            tx_id,
            [{"category": "Alimentação", "amount": "60"}, {"category": "Lazer", "amount": "30"}],
        )
        await ledger.apply_transaction(
            session,
            TransactionDraft(
                amount=Decimal("10"),
                date=date(2026, 3, 6),
                kind=TransactionKind.EXPENSE,
                category="Lazer",
                account_id=checking.id,
            ),
        )

        totals = await splits.category_totals(
            session, TransactionKind.EXPENSE, date(2026, 3, 1), date(2026, 4, 1)
        )

        assert totals == {"Alimentação": Decimal("60"), "Lazer": Decimal("40")}
