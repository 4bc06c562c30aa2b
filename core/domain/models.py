"""
도메인 엔티티 모델

컬렉션당 하나의 Pydantic 모델. 저장소는 모든 쓰기에서 병합된 문서를
ENTITY_MODELS 의 모델로 검증하므로 알 수 없는 필드나 누락된 필드는 거부된다.

직렬화 규칙:
- 금액/수량: Decimal → 문자열
- 날짜: YYYY-MM-DD, 시각: ISO-8601 (UTC)
- id 는 문서 키이므로 본문에 저장하지 않음
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.constants import Collections
from core.types import (
    AccountStatus,
    AccountType,
    DebtPaymentMethod,
    DebtStatus,
    InvoiceItemKind,
    InvoiceStatus,
    MovementKind,
    OwnershipType,
    PaymentMethod,
    TransactionKind,
)


class Entity(BaseModel):
    """모든 저장 엔티티의 기반 모델"""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(default=None, exclude=True, description="문서 ID")
    owner_id: str = Field(..., min_length=1, description="소유 사용자 ID")
    created_at: datetime | None = Field(default=None, description="생성 시각 (UTC)")

    def to_document(self) -> dict[str, Any]:
        """저장용 dict (JSON 호환 값)"""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]):
        """저장소 문서 → 모델"""
        return cls.model_validate({**data, "id": doc_id})


class Split(BaseModel):
    """거래 분할 항목"""

    model_config = ConfigDict(extra="forbid")

    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


def _check_split_sum(amount: Decimal, splits: list[Split]) -> None:
    if splits and sum((s.amount for s in splits), Decimal("0")) != amount:
        raise ValueError("분할 합계가 거래 금액과 일치하지 않습니다")


class UserProfile(Entity):
    """사용자 초기화 기록"""

    email: str | None = None
    initialized_at: datetime | None = None


class Account(Entity):
    """계좌

    불변식: current_balance == initial_balance + Σ(참조하는 거래의 부호 금액)
    """

    name: str = Field(..., min_length=1)
    type: AccountType = AccountType.CHECKING
    initial_balance: Decimal = Decimal("0")
    current_balance: Decimal = Decimal("0")
    status: AccountStatus = AccountStatus.ACTIVE
    portfolio_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


class Transaction(Entity):
    """거래 (수입/지출/이체)"""

    description: str = ""
    amount: Decimal = Field(..., gt=0)
    date: date
    kind: TransactionKind
    category: str = ""
    subcategory: str | None = None
    payment_method: PaymentMethod | None = None
    account_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    splits: list[Split] = Field(default_factory=list)
    recurring_id: str | None = None
    invoice_id: str | None = None
    movement_id: str | None = None
    debt_id: str | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Transaction":
        _check_split_sum(self.amount, self.splits)
        if self.kind == TransactionKind.TRANSFER:
            if not self.from_account_id or not self.to_account_id:
                raise ValueError("이체에는 출금/입금 계좌가 필요합니다")
            if self.account_id is not None:
                raise ValueError("이체에는 account_id를 사용할 수 없습니다")
        elif self.from_account_id or self.to_account_id:
            raise ValueError("수입/지출에는 이체 계좌를 사용할 수 없습니다")
        return self


class CreditCard(Entity):
    """신용카드 (한도는 표시용)"""

    name: str = Field(..., min_length=1)
    closing_day: int = Field(..., ge=1, le=31)
    due_day: int = Field(..., ge=1, le=31)
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)


class Invoice(Entity):
    """카드 청구서 (카드 × 월 당 1개)

    불변식: total_amount == Σ(항목 금액)
    """

    card_id: str
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900)
    total_amount: Decimal = Decimal("0")
    status: InvoiceStatus = InvoiceStatus.OPEN
    due_date: date
    paid_at: datetime | None = None
    payment_transaction_id: str | None = None


class InvoiceItem(Entity):
    """청구서 항목 (parent_id = invoice_id)"""

    invoice_id: str
    card_id: str
    kind: InvoiceItemKind = InvoiceItemKind.PURCHASE
    description: str = ""
    amount: Decimal
    category: str = ""
    purchase_date: date
    splits: list[Split] = Field(default_factory=list)
    installment_number: int | None = Field(default=None, ge=1)
    installment_count: int | None = Field(default=None, ge=2)
    installment_group: str | None = None
    recurring_id: str | None = None

    @model_validator(mode="after")
    def _check_sign(self) -> "InvoiceItem":
        if self.kind == InvoiceItemKind.PURCHASE:
            if self.amount <= 0:
                raise ValueError("구매 항목 금액은 0보다 커야 합니다")
            _check_split_sum(self.amount, self.splits)
        elif self.amount >= 0:
            raise ValueError("선결제 항목 금액은 음수여야 합니다")
        return self


class RecurringTransaction(Entity):
    """반복 거래 정의 (월 1회 이하 실체화)"""

    description: str = ""
    amount: Decimal = Field(..., gt=0)
    day_of_month: int = Field(..., ge=1, le=31)
    kind: TransactionKind
    category: str = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.DEBIT
    account_id: str | None = None
    card_id: str | None = None
    last_processed: datetime | None = None

    @model_validator(mode="after")
    def _check_target(self) -> "RecurringTransaction":
        if self.kind == TransactionKind.TRANSFER:
            raise ValueError("반복 거래는 수입/지출만 가능합니다")
        if self.payment_method == PaymentMethod.CREDIT_CARD:
            if not self.card_id or self.account_id:
                raise ValueError("카드 결제 반복 거래에는 card_id만 지정해야 합니다")
            if self.kind != TransactionKind.EXPENSE:
                raise ValueError("카드 결제 반복 거래는 지출만 가능합니다")
        elif not self.account_id or self.card_id:
            raise ValueError("계좌 결제 반복 거래에는 account_id만 지정해야 합니다")
        return self


class Portfolio(Entity):
    """투자 포트폴리오"""

    name: str = Field(..., min_length=1)
    description: str = ""
    ownership_type: OwnershipType = OwnershipType.OWN
    total_invested: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    account_id: str | None = None


class Asset(Entity):
    """보유 자산 (parent_id = portfolio_id)

    Movement 로그의 materialized view. quantity == 0 이면 평균가와 투자금도 0.
    """

    portfolio_id: str
    name: str = ""
    ticker: str = Field(..., min_length=1)
    asset_type: str = ""
    asset_class: str = ""
    broker: str = ""
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    average_price: Decimal = Field(default=Decimal("0"), ge=0)
    total_invested: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")

    @model_validator(mode="after")
    def _check_flat(self) -> "Asset":
        if self.quantity == 0 and (self.average_price != 0 or self.total_invested != 0):
            raise ValueError("수량이 0이면 평균가와 투자금도 0이어야 합니다")
        return self


class Movement(Entity):
    """자산 이동 (parent_id = asset_id, append-only)

    배당의 경우 quantity 는 지급일 기준 보유 수량 스냅샷, total_cost 는 수령액.
    """

    portfolio_id: str
    asset_id: str
    ticker: str = ""
    kind: MovementKind
    quantity: Decimal = Field(..., ge=0)
    price_per_unit: Decimal = Field(default=Decimal("0"), ge=0)
    total_cost: Decimal = Field(default=Decimal("0"), ge=0)
    date: date
    transaction_id: str | None = None

    @model_validator(mode="after")
    def _check_quantity(self) -> "Movement":
        if self.kind != MovementKind.DIVIDEND and self.quantity <= 0:
            raise ValueError("매수/매도 수량은 0보다 커야 합니다")
        return self


class Budget(Entity):
    """카테고리 예산 (ID = {owner_id}_{category})"""

    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class Category(Entity):
    """거래 카테고리"""

    name: str = Field(..., min_length=1)
    kind: TransactionKind

    @model_validator(mode="after")
    def _check_kind(self) -> "Category":
        if self.kind == TransactionKind.TRANSFER:
            raise ValueError("카테고리는 수입/지출만 가능합니다")
        return self


class Debt(Entity):
    """부채 (할부 상환)

    amount_paid, installments_paid 는 상환 기록으로만 증가한다.
    상환 횟수가 total_installments 에 이르거나 상환액이 total_amount 에 이르면 PAID.
    """

    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    total_amount: Decimal = Field(..., gt=0)
    installment_amount: Decimal = Field(..., gt=0)
    total_installments: int = Field(..., ge=1)
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: date
    contract_date: date | None = None
    payment_method: DebtPaymentMethod = DebtPaymentMethod.ACCOUNT_DEBIT
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    installments_paid: int = Field(default=0, ge=0)
    status: DebtStatus = DebtStatus.ACTIVE

    @model_validator(mode="after")
    def _check_progress(self) -> "Debt":
        if self.installments_paid > self.total_installments:
            raise ValueError("상환 횟수가 총 할부 횟수를 넘을 수 없습니다")
        if self.amount_paid > self.total_amount:
            raise ValueError("상환액이 부채 총액을 넘을 수 없습니다")
        return self

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - self.amount_paid


# 컬렉션 → 모델 (저장소 쓰기 검증용)
ENTITY_MODELS: dict[str, type[Entity]] = {
    Collections.USERS: UserProfile,
    Collections.ACCOUNTS: Account,
    Collections.TRANSACTIONS: Transaction,
    Collections.CREDIT_CARDS: CreditCard,
    Collections.INVOICES: Invoice,
    Collections.INVOICE_ITEMS: InvoiceItem,
    Collections.RECURRING: RecurringTransaction,
    Collections.PORTFOLIOS: Portfolio,
    Collections.ASSETS: Asset,
    Collections.MOVEMENTS: Movement,
    Collections.BUDGETS: Budget,
    Collections.CATEGORIES: Category,
    Collections.DEBTS: Debt,
}
