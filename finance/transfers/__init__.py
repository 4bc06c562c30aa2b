"""
이체 및 거래 분할 확장

원장 코어의 잔액 변경 단일 진입점 위에 구현된다.
"""

from finance.transfers.service import TransferService
from finance.transfers.splits import SplitService

__all__ = [
    "TransferService",
    "SplitService",
]
