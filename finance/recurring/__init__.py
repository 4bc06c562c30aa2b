"""
반복 거래 실체화
"""

from finance.recurring.materializer import RecurringService

__all__ = ["RecurringService"]
