"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class RunMode(str, Enum):
    """실행 모드 (실데이터 / 샌드박스)"""

    PRODUCTION = "production"
    SANDBOX = "sandbox"


class AccountType(str, Enum):
    """계좌 유형"""

    CHECKING = "checking"
    SAVINGS = "savings"
    WALLET = "wallet"
    INVESTMENT = "investment"


class AccountStatus(str, Enum):
    """계좌 상태"""

    ACTIVE = "active"
    ARCHIVED = "archived"


class TransactionKind(str, Enum):
    """거래 종류

    REVENUE: 수입 (+amount)
    EXPENSE: 지출 (-amount)
    TRANSFER: 계좌 간 이체 (출금 계좌 -amount, 입금 계좌 +amount)
    """

    REVENUE = "revenue"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class PaymentMethod(str, Enum):
    """결제 수단"""

    CASH = "cash"
    DEBIT = "debit"
    PIX = "pix"
    CREDIT_CARD = "credit_card"


class InvoiceStatus(str, Enum):
    """카드 청구서 상태"""

    OPEN = "open"
    CLOSED = "closed"
    PAID = "paid"


class InvoiceItemKind(str, Enum):
    """청구서 항목 종류

    ADVANCE_PAYMENT 항목은 음수 금액으로 total_amount 와 항목 합계를 일치시킴
    """

    PURCHASE = "purchase"
    ADVANCE_PAYMENT = "advance_payment"


class OwnershipType(str, Enum):
    """포트폴리오 소유 유형

    OWN: 본인 자산 (연결된 투자 계좌로 현금 흐름 발생)
    THIRD_PARTY: 제3자 자산 (현금 흐름 없음)
    """

    OWN = "own"
    THIRD_PARTY = "third_party"


class MovementKind(str, Enum):
    """투자 자산 이동 종류"""

    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


class RecurringState(str, Enum):
    """반복 거래 정의 상태 (현재 월 기준)"""

    NEVER_RUN = "never_run"
    PROCESSED_THIS_MONTH = "processed_this_month"
    DUE_AGAIN = "due_again"


class DebtStatus(str, Enum):
    """부채 상태"""

    ACTIVE = "active"
    PAID = "paid"


class DebtPaymentMethod(str, Enum):
    """부채 상환 방식

    ACCOUNT_DEBIT: 계좌 자동 이체 (상환 시 지출 거래 생성 + 잔액 감소)
    BANK_SLIP: 보레투 등 계좌 밖 납부 (진행 상황만 기록)
    """

    ACCOUNT_DEBIT = "account_debit"
    BANK_SLIP = "bank_slip"
