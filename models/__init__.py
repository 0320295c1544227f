"""
Data models
"""
from .expense import Expense, Category
from .budget import Budget, BudgetProgress
from .alert import SpendingAlert, TriggeredAlert
from .spending_habit import SpendingHabit
from .location import (
    Country, State, City, Locality, LocationExpense,
    HabitProfile, CalculatedExpense, ExpenseBreakdown, SpendingHabitResult
)
from .notification import Notification
from .profile import Profile
from .saved_data import SavedData

__all__ = [
    'Expense', 'Category',
    'Budget', 'BudgetProgress',
    'SpendingAlert', 'TriggeredAlert',
    'SpendingHabit',
    'Country', 'State', 'City', 'Locality', 'LocationExpense',
    'HabitProfile', 'CalculatedExpense', 'ExpenseBreakdown', 'SpendingHabitResult',
    'Notification',
    'Profile',
    'SavedData'
]
