"""
Budget models
"""
from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

from models.fields import parse_date, parse_datetime, to_decimal, iso

BUDGET_PERIODS = ('weekly', 'monthly', 'yearly')


@dataclass
class Budget:
    """Spending limit for a category over a date range"""
    id: Optional[int] = None
    user_id: str = ""
    category_id: Optional[int] = None
    amount: Decimal = Decimal('0')
    period: str = "monthly"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None
    category_name: Optional[str] = None

    def is_active(self, today: date) -> bool:
        if self.start_date and today < self.start_date:
            return False
        return self.end_date is None or today <= self.end_date

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'category_id': self.category_id,
            'category_name': self.category_name,
            'amount': float(self.amount),
            'period': self.period,
            'start_date': iso(self.start_date),
            'end_date': iso(self.end_date),
            'created_at': iso(self.created_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Budget':
        return cls(
            id=data.get('id'),
            user_id=str(data['user_id']),
            category_id=data.get('category_id'),
            amount=to_decimal(data['amount']),
            period=data.get('period') or 'monthly',
            start_date=parse_date(data.get('start_date')),
            end_date=parse_date(data.get('end_date')),
            created_at=parse_datetime(data.get('created_at')),
            category_name=data.get('category_name')
        )


@dataclass
class BudgetProgress:
    """How much of a budget has been spent"""
    budget: Budget
    spent: Decimal = Decimal('0')

    @property
    def remaining(self) -> Decimal:
        return self.budget.amount - self.spent

    @property
    def percentage_used(self) -> float:
        if self.budget.amount <= 0:
            return 0.0
        return float(self.spent / self.budget.amount * 100)

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.budget.amount

    def to_dict(self) -> dict:
        return {
            **self.budget.to_dict(),
            'spent': float(self.spent),
            'remaining': float(self.remaining),
            'percentage_used': round(self.percentage_used, 2),
            'is_over_budget': self.is_over_budget
        }
