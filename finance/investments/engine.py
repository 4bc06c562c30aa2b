"""
투자 포지션 엔진

Asset 의 수량/평균가/투자금은 Movement 로그의 materialized view 다.
- 기록: 과거 날짜가 끼어들지 않으면 증분 적용, 끼어들면 전체 재계산
- 삭제: 평균가 이력은 역산할 수 없으므로 항상 전체 재계산

OWN 포트폴리오의 매수/매도/배당은 연결 투자 계좌에 현금 거래를 함께 기록한다.
이동 + 현금 거래 + 자산 갱신 + 포트폴리오 합계 변경은 하나의 트랜잭션이다.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from adapters.interfaces import IDocumentStore, IStoreTransaction
from adapters.models import OrderBy
from core.constants import Collections, Defaults
from core.domain.models import Asset, Movement, Portfolio, Transaction
from core.errors import StoreError, ValidationError
from core.session import Session
from core.types import MovementKind, OwnershipType, TransactionKind
from core.utils.money import quantize_money
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity, require_positive
from finance.investments.positions import Position, apply_movement, held_quantity, replay
from finance.ledger.transactions import (
    TransactionDraft,
    book_transaction,
    require_account,
    unbook_transaction,
)

logger = logging.getLogger(__name__)

_CASH_LABELS = {
    MovementKind.BUY: "Compra de",
    MovementKind.SELL: "Venda de",
    MovementKind.DIVIDEND: "Proventos de",
}


@dataclass(frozen=True)
class MovementDraft:
    """매수/매도 입력"""

    kind: MovementKind
    quantity: Decimal
    price_per_unit: Decimal
    date: date


@dataclass(frozen=True)
class DividendDraft:
    """배당 입력 (단위당 금액 또는 총액 중 하나 이상)"""

    payment_date: date
    value_per_unit: Decimal | None = None
    total_amount: Decimal | None = None


class InvestmentService(StoreBackedService):
    """투자 이동 기록 / 삭제 / 재계산

    사용 예시:
    ```python
    engine = InvestmentService(store)
    m = await engine.record_movement(session, pid, aid, MovementDraft(
        kind=MovementKind.BUY, quantity=Decimal("10"),
        price_per_unit=Decimal("20"), date=date(2026, 3, 2),
    ))
    await engine.delete_movement_and_recalculate(session, pid, aid, m.id)
    ```
    """

    async def record_movement(
        self,
        session: Session,
        portfolio_id: str,
        asset_id: str,
        draft: MovementDraft,
    ) -> Movement:
        """매수/매도 기록

        Raises:
            ValidationError: 수량/단가 ≤ 0, 보유 수량 초과 매도, 배당 종류
            NotFoundError: 포트폴리오/자산 없음
        """
        if draft.kind not in (MovementKind.BUY, MovementKind.SELL):
            raise ValidationError("배당은 record_dividend 로 기록해야 합니다")
        quantity = require_positive(draft.quantity, "수량")
        price = require_positive(draft.price_per_unit, "단가")
        total_cost = quantity * price

        store = self._store(session)
        portfolio, account_id = await self._load_portfolio(store, portfolio_id)
        movement_id = uuid.uuid4().hex

        async with store.transaction() as tx:
            asset = await self._load_asset(tx, portfolio_id, asset_id)
            history = await self._load_movements(tx, asset_id)

            before = Position.from_asset(asset)
            if any(m.date > draft.date for m in history):
                # 과거 날짜 기록: 순서가 바뀌므로 전체 재계산
                candidate = build_entity(
                    Movement,
                    owner_id=session.user_id,
                    portfolio_id=portfolio_id,
                    asset_id=asset_id,
                    kind=draft.kind,
                    quantity=quantity,
                    price_per_unit=price,
                    date=draft.date,
                )
                after = replay([*history, candidate])
            else:
                after = apply_movement(before, draft.kind, quantity, price)

            transaction_id = None
            if account_id:
                cash_kind = (
                    TransactionKind.EXPENSE if draft.kind == MovementKind.BUY else TransactionKind.REVENUE
                )
                cash = self._book_cash(
                    tx, session, account_id, cash_kind, quantize_money(total_cost),
                    draft.date, draft.kind, asset.ticker, movement_id,
                )
                transaction_id = cash.id

            movement = build_entity(
                Movement,
                owner_id=session.user_id,
                portfolio_id=portfolio_id,
                asset_id=asset_id,
                ticker=asset.ticker,
                kind=draft.kind,
                quantity=quantity,
                price_per_unit=price,
                total_cost=total_cost,
                date=draft.date,
                transaction_id=transaction_id,
                created_at=now_utc(),
            )
            tx.create(Collections.MOVEMENTS, movement.to_document(), doc_id=movement_id, parent_id=asset_id)
            self._write_position(tx, portfolio_id, asset, after)

        movement.id = movement_id
        logger.info(
            f"투자 이동 기록: {draft.kind.value} {asset.ticker} {quantity} × {price} "
            f"→ qty={after.quantity} avg={after.average_price}",
            extra={"movement_id": movement_id, "portfolio_id": portfolio.id, "owner_id": session.user_id},
        )
        return movement

    async def record_dividend(
        self,
        session: Session,
        portfolio_id: str,
        asset_id: str,
        draft: DividendDraft,
    ) -> Movement:
        """배당 기록 (지급일 기준 보유 수량 스냅샷)

        Raises:
            ValidationError: 보유 수량 ≤ 0 이고 총액이 없음, 금액 ≤ 0
        """
        if draft.total_amount is None and draft.value_per_unit is None:
            raise ValidationError("배당 금액이 필요합니다", user_message="단위당 금액 또는 총액을 입력하세요")
        value_per_unit = (
            require_positive(draft.value_per_unit, "단위당 금액")
            if draft.value_per_unit is not None
            else None
        )
        total_amount = (
            require_positive(draft.total_amount, "배당 총액")
            if draft.total_amount is not None
            else None
        )

        store = self._store(session)
        portfolio, account_id = await self._load_portfolio(store, portfolio_id)
        movement_id = uuid.uuid4().hex

        async with store.transaction() as tx:
            asset = await self._load_asset(tx, portfolio_id, asset_id)
            history = await self._load_movements(tx, asset_id)
            quantity = held_quantity(history, draft.payment_date)

            if quantity <= 0 and total_amount is None:
                raise ValidationError(
                    f"지급일 기준 보유 수량 없음: {asset.ticker} {draft.payment_date}",
                    user_message="지급일에 보유 수량이 없습니다. 총액을 직접 입력하세요",
                )
            quantity = max(quantity, Decimal("0"))
            if total_amount is None:
                total_amount = quantize_money(quantity * value_per_unit)
                require_positive(total_amount, "배당 총액")
            if value_per_unit is None:
                value_per_unit = total_amount / quantity if quantity > 0 else Decimal("0")

            transaction_id = None
            if account_id:
                cash = self._book_cash(
                    tx, session, account_id, TransactionKind.REVENUE, total_amount,
                    draft.payment_date, MovementKind.DIVIDEND, asset.ticker, movement_id,
                )
                transaction_id = cash.id

            movement = build_entity(
                Movement,
                owner_id=session.user_id,
                portfolio_id=portfolio_id,
                asset_id=asset_id,
                ticker=asset.ticker,
                kind=MovementKind.DIVIDEND,
                quantity=quantity,
                price_per_unit=value_per_unit,
                total_cost=total_amount,
                date=draft.payment_date,
                transaction_id=transaction_id,
                created_at=now_utc(),
            )
            tx.create(Collections.MOVEMENTS, movement.to_document(), doc_id=movement_id, parent_id=asset_id)

        movement.id = movement_id
        logger.info(
            f"배당 기록: {asset.ticker} {total_amount} (보유 {quantity}, {draft.payment_date})",
            extra={"movement_id": movement_id, "portfolio_id": portfolio.id, "owner_id": session.user_id},
        )
        return movement

    async def delete_movement_and_recalculate(
        self,
        session: Session,
        portfolio_id: str,
        asset_id: str,
        movement_id: str,
    ) -> Position:
        """이동 삭제 + 연결 거래 되돌림 + 남은 이동 전체 재계산 (하나의 트랜잭션)

        연결 거래 조회가 권한 거부되면 잔액을 되돌리지 않고 거래 문서만 삭제한다.
        이 경우 계좌 잔액이 어긋나므로 경고를 남기고 정합성 점검 작업이 복구한다.

        Returns:
            재계산된 포지션

        Raises:
            ValidationError: 남은 이동을 재계산할 수 없음 (매도가 보유 수량 초과)
        """
        store = self._store(session)
        async with store.transaction() as tx:
            movement = await fetch_entity(tx, Collections.MOVEMENTS, Movement, movement_id, "투자 이동")
            if movement.asset_id != asset_id or movement.portfolio_id != portfolio_id:
                raise ValidationError(f"자산 불일치: {movement_id} ∉ {portfolio_id}/{asset_id}")
            asset = await self._load_asset(tx, portfolio_id, asset_id)

            if movement.transaction_id:
                await self._remove_linked_transaction(tx, session, movement)

            tx.delete(Collections.MOVEMENTS, movement_id)
            remaining = await self._load_movements(tx, asset_id)
            after = replay(remaining)
            self._write_position(tx, portfolio_id, asset, after)

        logger.info(
            f"투자 이동 삭제: {movement.kind.value} {asset.ticker} {movement.quantity} "
            f"→ 재계산 qty={after.quantity} avg={after.average_price}",
            extra={"movement_id": movement_id, "owner_id": session.user_id},
        )
        return after

    async def recalculate_asset(self, session: Session, portfolio_id: str, asset_id: str) -> Position:
        """이동 로그로 자산 재계산 (저장 값 교정)"""
        store = self._store(session)
        async with store.transaction() as tx:
            asset = await self._load_asset(tx, portfolio_id, asset_id)
            after = replay(await self._load_movements(tx, asset_id))
            if after != Position.from_asset(asset):
                self._write_position(tx, portfolio_id, asset, after)
        return after

    async def list_movements(self, session: Session, portfolio_id: str, asset_id: str) -> list[Movement]:
        """자산의 이동 목록 (날짜순, 같은 날짜는 기록 순)"""
        docs = await self._store(session).query(
            Collections.MOVEMENTS, order_by=OrderBy("date"), parent_id=asset_id
        )
        return [
            m for m in (Movement.from_document(d.doc_id, d.data) for d in docs)
            if m.portfolio_id == portfolio_id
        ]

    # -------------------------------------------------------------------------
    # 내부 구현
    # -------------------------------------------------------------------------

    @staticmethod
    async def _load_portfolio(store: IDocumentStore, portfolio_id: str) -> tuple[Portfolio, str | None]:
        """포트폴리오와 현금 계좌 (THIRD_PARTY 는 None)

        계좌는 증감 대상이므로 트랜잭션 밖에서 확인한다.
        """
        portfolio = await fetch_entity(
            store, Collections.PORTFOLIOS, Portfolio, portfolio_id, "포트폴리오"
        )
        if portfolio.ownership_type != OwnershipType.OWN:
            return portfolio, None
        if not portfolio.account_id:
            raise ValidationError(f"투자 계좌가 연결되지 않은 포트폴리오: {portfolio_id}")
        await require_account(store, portfolio.account_id)
        return portfolio, portfolio.account_id

    @staticmethod
    async def _load_asset(tx: IStoreTransaction, portfolio_id: str, asset_id: str) -> Asset:
        asset = await fetch_entity(tx, Collections.ASSETS, Asset, asset_id, "자산")
        if asset.portfolio_id != portfolio_id:
            raise ValidationError(f"포트폴리오 불일치: {asset_id} ∉ {portfolio_id}")
        return asset

    @staticmethod
    async def _load_movements(tx: IStoreTransaction, asset_id: str) -> list[Movement]:
        """삽입 순서의 이동 목록"""
        docs = await tx.query(Collections.MOVEMENTS, parent_id=asset_id)
        return [Movement.from_document(d.doc_id, d.data) for d in docs]

    @staticmethod
    def _book_cash(
        tx: IStoreTransaction,
        session: Session,
        account_id: str,
        kind: TransactionKind,
        amount: Decimal,
        on: date,
        movement_kind: MovementKind,
        ticker: str,
        movement_id: str,
    ) -> Transaction:
        return book_transaction(tx, session, TransactionDraft(
            amount=amount,
            date=on,
            kind=kind,
            category=Defaults.INVESTMENT_CATEGORY,
            account_id=account_id,
            description=f"{_CASH_LABELS[movement_kind]} {ticker}",
            movement_id=movement_id,
        ))

    @staticmethod
    def _write_position(tx: IStoreTransaction, portfolio_id: str, asset: Asset, after: Position) -> None:
        tx.update(Collections.ASSETS, asset.id, after.as_fields())
        invested_delta = after.total_invested - asset.total_invested
        if invested_delta != 0:
            tx.increment(Collections.PORTFOLIOS, portfolio_id, "total_invested", invested_delta)

    @staticmethod
    async def _remove_linked_transaction(
        tx: IStoreTransaction,
        session: Session,
        movement: Movement,
    ) -> None:
        try:
            doc = await tx.get(Collections.TRANSACTIONS, movement.transaction_id)
        except StoreError as e:
            if e.code != StoreError.PERMISSION_DENIED:
                raise
            logger.warning(
                f"연결 거래 조회 거부, 잔액 되돌림 없이 삭제: {movement.transaction_id} "
                f"(movement={movement.id}) - 정합성 점검 필요",
                extra={"transaction_id": movement.transaction_id, "owner_id": session.user_id},
            )
            tx.delete(Collections.TRANSACTIONS, movement.transaction_id, force=True)
            return

        if doc is None:
            logger.warning(f"연결 거래 없음: {movement.transaction_id} (movement={movement.id})")
            return
        unbook_transaction(tx, Transaction.from_document(doc.doc_id, doc.data))
