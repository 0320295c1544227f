"""
Command and message handlers
"""
from .base_handler import BaseHandler
from .expense_handler import ExpenseHandler
from .budget_handler import BudgetHandler
from .alert_handler import AlertHandler
from .analytics_handler import AnalyticsHandler
from .tax_handler import TaxHandler

__all__ = [
    'BaseHandler',
    'ExpenseHandler',
    'BudgetHandler',
    'AlertHandler',
    'AnalyticsHandler',
    'TaxHandler'
]
