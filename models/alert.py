"""
Spending alert models
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from models.fields import parse_datetime, to_decimal, iso

ALERT_PERIODS = ('daily', 'weekly', 'monthly')


@dataclass
class SpendingAlert:
    """Threshold on spending in a category (or overall when category_id is None)"""
    id: Optional[int] = None
    user_id: str = ""
    category_id: Optional[int] = None
    threshold: Decimal = Decimal('0')
    period: str = "monthly"
    active: bool = True
    created_at: Optional[datetime] = None
    category_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'category_id': self.category_id,
            'category_name': self.category_name,
            'threshold': float(self.threshold),
            'period': self.period,
            'active': self.active,
            'created_at': iso(self.created_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SpendingAlert':
        return cls(
            id=data.get('id'),
            user_id=str(data['user_id']),
            category_id=data.get('category_id'),
            threshold=to_decimal(data['threshold']),
            period=data.get('period') or 'monthly',
            active=bool(data.get('active', True)),
            created_at=parse_datetime(data.get('created_at')),
            category_name=data.get('category_name')
        )


@dataclass
class TriggeredAlert:
    alert: SpendingAlert
    spent: Decimal

    @property
    def threshold(self) -> Decimal:
        return self.alert.threshold

    @property
    def percentage(self) -> float:
        if self.alert.threshold <= 0:
            return 0.0
        return float(self.spent / self.alert.threshold * 100)
