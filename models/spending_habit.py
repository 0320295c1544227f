"""
Spending habit model
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from models.fields import parse_datetime, to_decimal, iso

HABIT_TYPES = ('conservative', 'moderate', 'liberal', 'custom')

DEFAULT_MULTIPLIERS = {
    'conservative': Decimal('0.85'),
    'moderate': Decimal('1.00'),
    'liberal': Decimal('1.25'),
}

DEFAULT_USER_ID = 'default'
GLOBAL_COUNTRY = 'GLOBAL'


@dataclass
class SpendingHabit:
    id: Optional[int] = None
    user_id: str = DEFAULT_USER_ID
    country_code: str = GLOBAL_COUNTRY
    state_code: Optional[str] = None
    name: str = ""
    habit_type: str = "moderate"
    expense_multiplier: Decimal = Decimal('1.00')
    description: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'country_code': self.country_code,
            'state_code': self.state_code,
            'name': self.name,
            'habit_type': self.habit_type,
            'expense_multiplier': float(self.expense_multiplier),
            'description': self.description,
            'is_default': self.is_default,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SpendingHabit':
        return cls(
            id=data.get('id'),
            user_id=str(data.get('user_id') or DEFAULT_USER_ID),
            country_code=data.get('country_code') or GLOBAL_COUNTRY,
            state_code=data.get('state_code'),
            name=data.get('name', ''),
            habit_type=data.get('habit_type') or 'moderate',
            expense_multiplier=to_decimal(data.get('expense_multiplier'), '1.00'),
            description=data.get('description'),
            is_default=bool(data.get('is_default', False)),
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at'))
        )
