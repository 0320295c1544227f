"""
Expense and expense category models
"""
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional

from models.fields import parse_date, parse_datetime, to_decimal, iso


@dataclass
class Category:
    """Expense category"""
    id: Optional[int] = None
    name: str = ""
    icon: str = ""
    color: str = ""
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'icon': self.icon,
            'color': self.color,
            'is_default': self.is_default
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Category':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            icon=data.get('icon') or '',
            color=data.get('color') or '',
            is_default=bool(data.get('is_default', False))
        )


@dataclass
class Expense:
    """A single expense"""
    id: Optional[int] = None
    user_id: str = ""
    category_id: Optional[int] = None
    amount: Decimal = Decimal('0')
    currency: str = "USD"
    expense_date: Optional[date] = None
    description: str = ""
    location: Optional[str] = None
    source: str = "manual"
    tags: List[str] = field(default_factory=list)
    receipt_url: Optional[str] = None
    is_recurring: bool = False
    recurring_interval: Optional[str] = None
    created_at: Optional[datetime] = None
    category_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'category_id': self.category_id,
            'category_name': self.category_name,
            'amount': float(self.amount),
            'currency': self.currency,
            'expense_date': iso(self.expense_date),
            'description': self.description,
            'location': self.location,
            'source': self.source,
            'tags': list(self.tags),
            'receipt_url': self.receipt_url,
            'is_recurring': self.is_recurring,
            'recurring_interval': self.recurring_interval,
            'created_at': iso(self.created_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Expense':
        return cls(
            id=data.get('id'),
            user_id=str(data['user_id']),
            category_id=data.get('category_id'),
            amount=to_decimal(data['amount']),
            currency=data.get('currency') or 'USD',
            expense_date=parse_date(data.get('expense_date')),
            description=data.get('description') or '',
            location=data.get('location'),
            source=data.get('source') or 'manual',
            tags=list(data.get('tags') or []),
            receipt_url=data.get('receipt_url'),
            is_recurring=bool(data.get('is_recurring', False)),
            recurring_interval=data.get('recurring_interval'),
            created_at=parse_datetime(data.get('created_at')),
            category_name=data.get('category_name')
        )
