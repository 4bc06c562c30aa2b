"""
카드 청구서 (Invoice Periodizer)

구매일과 카드 마감일로 청구 기간을 정하고, 기간 청구서의 항목과 합계를 함께 관리한다.
"""

from finance.invoices.cards import CardService
from finance.invoices.periods import InvoicePeriod, due_date_for, resolve_period
from finance.invoices.service import InvoiceService, LineItemDraft, ensure_invoice, append_item

__all__ = [
    "CardService",
    "InvoicePeriod",
    "due_date_for",
    "resolve_period",
    "InvoiceService",
    "LineItemDraft",
    "ensure_invoice",
    "append_item",
]
