"""
투자 조회 / 배당 요약

모든 자산의 이동을 한 번에 읽는 컬렉션 그룹 조회를 사용한다.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from adapters.models import OrderBy, where
from core.constants import Collections
from core.domain.models import Movement
from core.session import Session
from core.types import MovementKind
from core.utils.timezone import add_months, clamp_day, today_local
from finance.base import StoreBackedService

ZERO = Decimal("0")


@dataclass
class AssetDividends:
    """자산별 배당 집계"""

    ticker: str
    total_amount: Decimal = ZERO
    last_date: date | None = None
    last_value: Decimal = ZERO
    count: int = 0


@dataclass
class DividendSummary:
    """배당 요약

    Attributes:
        total_received: 전체 수령액
        last_12_months: 최근 1년 수령액
        current_month: 이번 달 수령액
        monthly: 최근 12개월 월별 합계 [("MM/YYYY", 금액)], 오래된 달부터
        by_asset: 자산별 집계 (총액 내림차순)
    """

    total_received: Decimal = ZERO
    last_12_months: Decimal = ZERO
    current_month: Decimal = ZERO
    monthly: list[tuple[str, Decimal]] = field(default_factory=list)
    by_asset: list[AssetDividends] = field(default_factory=list)


def summarize_dividends(dividends: Iterable[Movement], today: date) -> DividendSummary:
    """배당 이동 목록 요약 (배당 외 이동은 무시)"""
    items = [m for m in dividends if m.kind == MovementKind.DIVIDEND]

    one_year_ago = clamp_day(today.year - 1, today.month, today.day)
    months = [add_months(today.year, today.month, i - 11) for i in range(12)]
    monthly = {key: ZERO for key in months}

    summary = DividendSummary()
    by_ticker: dict[str, AssetDividends] = {}

    for m in items:
        summary.total_received += m.total_cost
        if m.date >= one_year_ago:
            summary.last_12_months += m.total_cost
        if (m.date.year, m.date.month) == (today.year, today.month):
            summary.current_month += m.total_cost
        key = (m.date.year, m.date.month)
        if key in monthly:
            monthly[key] += m.total_cost

        agg = by_ticker.setdefault(m.ticker, AssetDividends(ticker=m.ticker))
        agg.total_amount += m.total_cost
        agg.count += 1
        if agg.last_date is None or m.date >= agg.last_date:
            agg.last_date = m.date
            agg.last_value = m.total_cost

    summary.monthly = [(f"{month:02d}/{year}", monthly[(year, month)]) for year, month in months]
    summary.by_asset = sorted(by_ticker.values(), key=lambda a: a.total_amount, reverse=True)
    return summary


class InvestmentReportService(StoreBackedService):
    """투자 조회 (컬렉션 그룹)"""

    async def list_dividends(self, session: Session) -> list[Movement]:
        """전체 배당 이동 (최신순)"""
        docs = await self._store(session).query(
            Collections.MOVEMENTS,
            [where("kind", "==", MovementKind.DIVIDEND)],
            order_by=OrderBy("date", descending=True),
        )
        return [Movement.from_document(d.doc_id, d.data) for d in docs]

    async def list_investment_transactions(self, session: Session) -> list[Movement]:
        """전체 매수/매도 이동 (최신순)"""
        docs = await self._store(session).query(
            Collections.MOVEMENTS,
            [where("kind", "in", [MovementKind.BUY, MovementKind.SELL])],
            order_by=OrderBy("date", descending=True),
        )
        return [Movement.from_document(d.doc_id, d.data) for d in docs]

    async def dividend_summary(self, session: Session, today: date | None = None) -> DividendSummary:
        return summarize_dividends(await self.list_dividends(session), today or today_local())

