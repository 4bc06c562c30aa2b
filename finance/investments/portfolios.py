"""
포트폴리오 / 자산 관리

OWN 포트폴리오는 생성 시 투자 계좌(type=INVESTMENT)를 같은 트랜잭션에서 만든다.
매수/매도의 현금 효과는 이 계좌로 기록된다.
"""

import logging
import uuid

from adapters.models import OrderBy, where
from core.constants import Collections
from core.domain.models import Account, Asset, Portfolio
from core.errors import ValidationError
from core.session import Session
from core.types import AccountStatus, AccountType, OwnershipType
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity

logger = logging.getLogger(__name__)


class PortfolioService(StoreBackedService):
    """포트폴리오 / 자산 CRUD"""

    async def create_portfolio(
        self,
        session: Session,
        name: str,
        ownership_type: OwnershipType = OwnershipType.OWN,
        description: str = "",
    ) -> Portfolio:
        """포트폴리오 생성 (OWN 이면 연결 투자 계좌 함께 생성)"""
        portfolio_id = uuid.uuid4().hex
        created_at = now_utc()
        account: Account | None = None

        if ownership_type == OwnershipType.OWN:
            account = build_entity(
                Account,
                owner_id=session.user_id,
                name=name,
                type=AccountType.INVESTMENT,
                portfolio_id=portfolio_id,
                created_at=created_at,
            )

        store = self._store(session)
        async with store.transaction() as tx:
            account_id = tx.create(Collections.ACCOUNTS, account.to_document()) if account else None
            portfolio = build_entity(
                Portfolio,
                owner_id=session.user_id,
                name=name,
                description=description,
                ownership_type=ownership_type,
                account_id=account_id,
                created_at=created_at,
            )
            tx.create(Collections.PORTFOLIOS, portfolio.to_document(), doc_id=portfolio_id)

        portfolio.id = portfolio_id
        logger.info(
            f"포트폴리오 생성: {name} ({ownership_type.value}) account={account_id}",
            extra={"portfolio_id": portfolio_id, "owner_id": session.user_id},
        )
        return portfolio

    async def get_portfolio(self, session: Session, portfolio_id: str) -> Portfolio:
        return await fetch_entity(
            self._store(session), Collections.PORTFOLIOS, Portfolio, portfolio_id, "포트폴리오"
        )

    async def list_portfolios(self, session: Session) -> list[Portfolio]:
        docs = await self._store(session).query(Collections.PORTFOLIOS, order_by=OrderBy("name"))
        return [Portfolio.from_document(d.doc_id, d.data) for d in docs]

    async def delete_portfolio(self, session: Session, portfolio_id: str) -> None:
        """포트폴리오 삭제 (자산이 남아 있으면 거부, 연결 계좌는 보관 처리)"""
        store = self._store(session)
        async with store.transaction() as tx:
            portfolio = await fetch_entity(
                tx, Collections.PORTFOLIOS, Portfolio, portfolio_id, "포트폴리오"
            )
            assets = await tx.query(Collections.ASSETS, parent_id=portfolio_id, limit=1)
            if assets:
                raise ValidationError(
                    f"자산이 남아 있는 포트폴리오: {portfolio_id}",
                    user_message="자산을 먼저 삭제하세요",
                )
            if portfolio.account_id and await tx.get(Collections.ACCOUNTS, portfolio.account_id):
                tx.update(
                    Collections.ACCOUNTS, portfolio.account_id, {"status": AccountStatus.ARCHIVED}
                )
            tx.delete(Collections.PORTFOLIOS, portfolio_id)

        logger.info(f"포트폴리오 삭제: {portfolio.name} ({portfolio_id})")

    # -------------------------------------------------------------------------
    # 자산
    # -------------------------------------------------------------------------

    async def add_asset(
        self,
        session: Session,
        portfolio_id: str,
        ticker: str,
        name: str = "",
        asset_type: str = "",
        asset_class: str = "",
        broker: str = "",
    ) -> Asset:
        """자산 추가 (포트폴리오 내 티커 중복 거부, 수량 0으로 시작)"""
        ticker = (ticker or "").strip().upper()
        if not ticker:
            raise ValidationError("티커가 필요합니다", user_message="티커를 입력하세요")

        store = self._store(session)
        async with store.transaction() as tx:
            await fetch_entity(tx, Collections.PORTFOLIOS, Portfolio, portfolio_id, "포트폴리오")
            existing = await tx.query(
                Collections.ASSETS, [where("ticker", "==", ticker)], parent_id=portfolio_id
            )
            if existing:
                raise ValidationError(
                    f"이미 등록된 자산: {ticker}",
                    user_message=f"{ticker}은(는) 이미 포트폴리오에 있습니다",
                )
            asset = build_entity(
                Asset,
                owner_id=session.user_id,
                portfolio_id=portfolio_id,
                ticker=ticker,
                name=name or ticker,
                asset_type=asset_type,
                asset_class=asset_class,
                broker=broker,
                created_at=now_utc(),
            )
            asset.id = tx.create(Collections.ASSETS, asset.to_document(), parent_id=portfolio_id)

        logger.info(f"자산 추가: {ticker} → portfolio={portfolio_id}")
        return asset

    async def get_asset(self, session: Session, portfolio_id: str, asset_id: str) -> Asset:
        asset = await fetch_entity(self._store(session), Collections.ASSETS, Asset, asset_id, "자산")
        if asset.portfolio_id != portfolio_id:
            raise ValidationError(f"포트폴리오 불일치: {asset_id} ∉ {portfolio_id}")
        return asset

    async def list_assets(self, session: Session, portfolio_id: str) -> list[Asset]:
        docs = await self._store(session).query(
            Collections.ASSETS, order_by=OrderBy("ticker"), parent_id=portfolio_id
        )
        return [Asset.from_document(d.doc_id, d.data) for d in docs]

    async def delete_asset(self, session: Session, portfolio_id: str, asset_id: str) -> None:
        """자산 삭제 (이동 기록이 있으면 거부)"""
        store = self._store(session)
        async with store.transaction() as tx:
            asset = await fetch_entity(tx, Collections.ASSETS, Asset, asset_id, "자산")
            if asset.portfolio_id != portfolio_id:
                raise ValidationError(f"포트폴리오 불일치: {asset_id} ∉ {portfolio_id}")
            movements = await tx.query(Collections.MOVEMENTS, parent_id=asset_id, limit=1)
            if movements:
                raise ValidationError(
                    f"이동 기록이 있는 자산: {asset_id}",
                    user_message="이동 기록을 먼저 삭제하세요",
                )
            tx.delete(Collections.ASSETS, asset_id)

        logger.info(f"자산 삭제: {asset.ticker} ({asset_id})")
