"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화. 금액은 문자열로 내보낸다.
엔티티 응답은 저장 문서 형식에 id 를 더한 dict 다.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from core.domain.models import Entity
from finance.budgets.service import BudgetUsage
from finance.investments.dividends import DividendSummary
from finance.investments.positions import Position
from finance.reconciler.drift import DriftInfo


def entity_response(entity: Entity) -> dict[str, Any]:
    """엔티티 → 응답 dict (id 포함)"""
    return {"id": entity.id, **entity.to_document()}


def entity_list(entities: list[Entity]) -> list[dict[str, Any]]:
    return [entity_response(e) for e in entities]


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (production/sandbox)")
    version: str


class ErrorResponse(BaseModel):
    """오류 응답"""

    error: str = Field(..., description="오류 종류")
    message: str = Field(..., description="사용자 메시지")
    retryable: bool = Field(default=False, description="재시도 가능 여부")


class PositionResponse(BaseModel):
    """자산 포지션 응답"""

    quantity: str
    average_price: str
    total_invested: str

    @classmethod
    def from_position(cls, position: Position) -> "PositionResponse":
        return cls(**{k: str(v) for k, v in position.as_fields().items()})


class MonthlyAmount(BaseModel):
    label: str = Field(..., description="MM/YYYY")
    amount: str


class AssetDividendResponse(BaseModel):
    ticker: str
    total_amount: str
    last_date: date | None
    last_value: str
    count: int


class DividendSummaryResponse(BaseModel):
    """배당 요약 응답"""

    total_received: str
    last_12_months: str
    current_month: str
    monthly: list[MonthlyAmount]
    by_asset: list[AssetDividendResponse]

    @classmethod
    def from_summary(cls, summary: DividendSummary) -> "DividendSummaryResponse":
        return cls(
            total_received=str(summary.total_received),
            last_12_months=str(summary.last_12_months),
            current_month=str(summary.current_month),
            monthly=[MonthlyAmount(label=label, amount=str(amount)) for label, amount in summary.monthly],
            by_asset=[
                AssetDividendResponse(
                    ticker=a.ticker,
                    total_amount=str(a.total_amount),
                    last_date=a.last_date,
                    last_value=str(a.last_value),
                    count=a.count,
                )
                for a in summary.by_asset
            ],
        )


class BudgetUsageResponse(BaseModel):
    """예산 사용량 응답"""

    category: str
    budget: str
    spent: str
    remaining: str
    exceeded: bool

    @classmethod
    def from_usage(cls, usage: BudgetUsage) -> "BudgetUsageResponse":
        return cls(
            category=usage.category,
            budget=str(usage.budget),
            spent=str(usage.spent),
            remaining=str(usage.remaining),
            exceeded=usage.exceeded,
        )


class DriftResponse(BaseModel):
    """정합성 점검 결과"""

    drift_kind: str
    entity_id: str
    expected: dict[str, Any]
    actual: dict[str, Any]
    description: str

    @classmethod
    def from_drift(cls, drift: DriftInfo) -> "DriftResponse":
        return cls(
            drift_kind=drift.drift_kind,
            entity_id=drift.entity_id,
            expected=drift.expected,
            actual=drift.actual,
            description=drift.description,
        )
