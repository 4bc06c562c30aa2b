"""
부채 / 할부 상환
"""

from finance.debts.service import DebtDraft, DebtPayment, DebtService

__all__ = ["DebtDraft", "DebtPayment", "DebtService"]
