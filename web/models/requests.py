"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증. 금액은 문자열 또는 숫자로 받아 Decimal 로 변환한다.
수정 요청은 보낸 필드만 반영한다 (model_dump(exclude_unset=True)).
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from core.types import (
    AccountType,
    DebtPaymentMethod,
    MovementKind,
    OwnershipType,
    PaymentMethod,
    TransactionKind,
)


class SplitRequest(BaseModel):
    """분할 항목"""

    category: str = Field(..., min_length=1, description="카테고리")
    amount: Decimal = Field(..., gt=0, description="금액")


# =========================================================================
# 계좌 / 거래
# =========================================================================


class AccountCreateRequest(BaseModel):
    """계좌 생성 요청"""

    name: str = Field(..., min_length=1, description="계좌 이름")
    type: AccountType = Field(default=AccountType.CHECKING, description="계좌 종류")
    initial_balance: Decimal = Field(default=Decimal("0"), description="초기 잔액")


class AccountUpdateRequest(BaseModel):
    """계좌 수정 요청"""

    name: str | None = Field(default=None, description="계좌 이름")
    type: AccountType | None = Field(default=None, description="계좌 종류")


class TransactionCreateRequest(BaseModel):
    """수입/지출 거래 생성 요청"""

    amount: Decimal = Field(..., description="금액 (> 0)")
    date: datetime.date
    kind: TransactionKind
    category: str = Field(..., description="카테고리")
    account_id: str = Field(..., description="계좌 ID")
    description: str = ""
    subcategory: str | None = None
    payment_method: PaymentMethod | None = None
    tags: list[str] = Field(default_factory=list)
    splits: list[SplitRequest] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": "90.00",
                    "date": "2026-03-01",
                    "kind": "expense",
                    "category": "Supermercado",
                    "account_id": "acc_1",
                    "splits": [
                        {"category": "Alimentação", "amount": "60.00"},
                        {"category": "Lazer", "amount": "30.00"},
                    ],
                }
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청"""

    amount: Decimal | None = None
    date: datetime.date | None = None
    kind: TransactionKind | None = None
    category: str | None = None
    subcategory: str | None = None
    payment_method: PaymentMethod | None = None
    account_id: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    splits: list[SplitRequest] | None = None


class SplitTransactionRequest(BaseModel):
    """거래 분할 교체 요청 (빈 목록이면 분할 해제)"""

    splits: list[SplitRequest] = Field(default_factory=list)


class TransferRequest(BaseModel):
    """계좌 간 이체 요청"""

    from_account_id: str = Field(..., description="출금 계좌")
    to_account_id: str = Field(..., description="입금 계좌")
    amount: Decimal = Field(..., description="금액 (> 0)")
    date: datetime.date
    description: str = ""


class TransferUpdateRequest(BaseModel):
    """이체 수정 요청"""

    from_account_id: str | None = None
    to_account_id: str | None = None
    amount: Decimal | None = None
    date: datetime.date | None = None
    description: str | None = None
    tags: list[str] | None = None


# =========================================================================
# 카드 / 청구서
# =========================================================================


class CardCreateRequest(BaseModel):
    """신용카드 등록 요청"""

    name: str = Field(..., min_length=1)
    closing_day: int = Field(..., ge=1, le=31, description="마감일")
    due_day: int = Field(..., ge=1, le=31, description="납부일")
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0, description="한도 (표시용)")


class CardUpdateRequest(BaseModel):
    """신용카드 수정 요청"""

    name: str | None = None
    closing_day: int | None = Field(default=None, ge=1, le=31)
    due_day: int | None = Field(default=None, ge=1, le=31)
    credit_limit: Decimal | None = Field(default=None, ge=0)


class CardPurchaseRequest(BaseModel):
    """카드 구매 요청"""

    amount: Decimal = Field(..., description="구매 금액 (할부면 전체 금액)")
    purchase_date: datetime.date
    category: str
    description: str = ""
    installments: int = Field(default=1, ge=1, le=48, description="할부 횟수")
    splits: list[SplitRequest] = Field(default_factory=list)


class InvoicePaymentRequest(BaseModel):
    """청구서 결제 요청"""

    account_id: str = Field(..., description="출금 계좌")
    payment_date: datetime.date


class AdvancePaymentRequest(BaseModel):
    """선결제 요청"""

    account_id: str = Field(..., description="출금 계좌")
    amount: Decimal = Field(..., description="선결제 금액 (> 0, ≤ 청구서 합계)")
    payment_date: datetime.date


class LineItemUpdateRequest(BaseModel):
    """청구서 항목 수정 요청"""

    amount: Decimal | None = None
    purchase_date: datetime.date | None = None
    category: str | None = None
    description: str | None = None
    splits: list[SplitRequest] | None = None


# =========================================================================
# 반복 거래
# =========================================================================


class RecurringCreateRequest(BaseModel):
    """반복 거래 정의 요청"""

    description: str = ""
    amount: Decimal
    day_of_month: int = Field(..., ge=1, le=31)
    kind: TransactionKind
    category: str
    payment_method: PaymentMethod = PaymentMethod.DEBIT
    account_id: str | None = None
    card_id: str | None = None


class RecurringUpdateRequest(BaseModel):
    """반복 거래 수정 요청"""

    description: str | None = None
    amount: Decimal | None = None
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    kind: TransactionKind | None = None
    category: str | None = None
    payment_method: PaymentMethod | None = None
    account_id: str | None = None
    card_id: str | None = None


# =========================================================================
# 투자
# =========================================================================


class PortfolioCreateRequest(BaseModel):
    """포트폴리오 생성 요청"""

    name: str = Field(..., min_length=1)
    ownership_type: OwnershipType = OwnershipType.OWN
    description: str = ""


class AssetCreateRequest(BaseModel):
    """자산 추가 요청"""

    ticker: str = Field(..., min_length=1)
    name: str = ""
    asset_type: str = ""
    asset_class: str = ""
    broker: str = ""


class MovementRequest(BaseModel):
    """매수/매도 요청"""

    kind: MovementKind
    quantity: Decimal
    price_per_unit: Decimal
    date: datetime.date


class DividendRequest(BaseModel):
    """배당 요청 (단위당 금액 또는 총액)"""

    payment_date: datetime.date
    value_per_unit: Decimal | None = None
    total_amount: Decimal | None = None


# =========================================================================
# 예산 / 카테고리
# =========================================================================


class BudgetRequest(BaseModel):
    """예산 설정 요청"""

    category: str = Field(..., min_length=1)
    amount: Decimal


class CategoryCreateRequest(BaseModel):
    """카테고리 추가 요청"""

    name: str = Field(..., min_length=1)
    kind: TransactionKind


# =========================================================================
# 부채
# =========================================================================


class DebtCreateRequest(BaseModel):
    """부채 등록 요청"""

    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    total_amount: Decimal
    installment_amount: Decimal
    total_installments: int = Field(..., ge=1)
    start_date: datetime.date
    contract_date: datetime.date | None = None
    interest_rate: Decimal = Decimal("0")
    payment_method: DebtPaymentMethod = DebtPaymentMethod.ACCOUNT_DEBIT


class DebtPaymentRequest(BaseModel):
    """할부 상환 요청 (계좌 자동 이체 부채는 account_id 필수)"""

    account_id: str | None = None
    payment_date: datetime.date
