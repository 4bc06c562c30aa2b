"""
투자 포지션 엔진

포트폴리오 / 자산 / 이동 로그와 가중 평균 단가 계산.
"""

from finance.investments.dividends import DividendSummary, InvestmentReportService, summarize_dividends
from finance.investments.engine import DividendDraft, InvestmentService, MovementDraft
from finance.investments.portfolios import PortfolioService
from finance.investments.positions import Position, apply_movement, held_quantity, replay

__all__ = [
    "DividendSummary",
    "InvestmentReportService",
    "summarize_dividends",
    "DividendDraft",
    "InvestmentService",
    "MovementDraft",
    "PortfolioService",
    "Position",
    "apply_movement",
    "held_quantity",
    "replay",
]
