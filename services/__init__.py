"""
Services
"""
from .database_service import DatabaseService
from .api_client import ApiClient, ApiResult
from .user_service import UserService
from .expense_service import ExpenseService
from .budget_service import BudgetService
from .alert_service import AlertService
from .analytics_service import AnalyticsService
from .notification_service import NotificationService
from .location_service import LocationService
from .location_expense_service import LocationExpenseService
from .spending_habit_service import SpendingHabitService
from .tax_calculation_service import TaxCalculationService
from .calculation_storage_service import CalculationStorageService

__all__ = [
    'DatabaseService',
    'ApiClient',
    'ApiResult',
    'UserService',
    'ExpenseService',
    'BudgetService',
    'AlertService',
    'AnalyticsService',
    'NotificationService',
    'LocationService',
    'LocationExpenseService',
    'SpendingHabitService',
    'TaxCalculationService',
    'CalculationStorageService'
]
