"""
정합성 점검 (Drift 감지 / 계좌 잔액 복구)
"""

from finance.reconciler.drift import DriftDetector, DriftInfo, expected_balances
from finance.reconciler.reconciler import Reconciler

__all__ = ["DriftDetector", "DriftInfo", "expected_balances", "Reconciler"]
