"""Token budget calculation."""

from .calculator import BudgetCalculator

__all__ = ["BudgetCalculator"]
