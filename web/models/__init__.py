"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    AdvancePaymentRequest,
    AssetCreateRequest,
    BudgetRequest,
    CardCreateRequest,
    CardPurchaseRequest,
    CardUpdateRequest,
    CategoryCreateRequest,
    DebtCreateRequest,
    DebtPaymentRequest,
    DividendRequest,
    InvoicePaymentRequest,
    LineItemUpdateRequest,
    MovementRequest,
    PortfolioCreateRequest,
    RecurringCreateRequest,
    RecurringUpdateRequest,
    SplitRequest,
    SplitTransactionRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransferRequest,
    TransferUpdateRequest,
)
from web.models.responses import (
    BudgetUsageResponse,
    DividendSummaryResponse,
    DriftResponse,
    ErrorResponse,
    HealthResponse,
    PositionResponse,
    entity_list,
    entity_response,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "AdvancePaymentRequest",
    "AssetCreateRequest",
    "BudgetRequest",
    "CardCreateRequest",
    "CardPurchaseRequest",
    "CardUpdateRequest",
    "CategoryCreateRequest",
    "DebtCreateRequest",
    "DebtPaymentRequest",
    "DividendRequest",
    "InvoicePaymentRequest",
    "LineItemUpdateRequest",
    "MovementRequest",
    "PortfolioCreateRequest",
    "RecurringCreateRequest",
    "RecurringUpdateRequest",
    "SplitRequest",
    "SplitTransactionRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "TransferRequest",
    "TransferUpdateRequest",
    # Responses
    "BudgetUsageResponse",
    "DividendSummaryResponse",
    "DriftResponse",
    "ErrorResponse",
    "HealthResponse",
    "PositionResponse",
    "entity_list",
    "entity_response",
]
