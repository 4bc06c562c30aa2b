"""
예산 / 카테고리
"""

from finance.budgets.categories import CategoryService, create_default_categories
from finance.budgets.service import BudgetService, BudgetUsage

__all__ = ["BudgetService", "BudgetUsage", "CategoryService", "create_default_categories"]
