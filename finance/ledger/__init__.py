"""
원장 코어 (계좌 / 거래)

잔액 변경의 단일 진입점(balance_delta, apply_balance_delta)을 제공한다.
"""

from finance.ledger.accounts import AccountService
from finance.ledger.transactions import (
    LedgerService,
    TransactionDraft,
    apply_balance_delta,
    balance_delta,
    book_transaction,
    require_account,
    transaction_deltas,
    unbook_transaction,
)

__all__ = [
    "AccountService",
    "LedgerService",
    "TransactionDraft",
    "apply_balance_delta",
    "balance_delta",
    "book_transaction",
    "require_account",
    "transaction_deltas",
    "unbook_transaction",
]
