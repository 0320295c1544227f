"""
User profile model
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.fields import parse_datetime, iso


@dataclass
class Profile:
    """Per-user preferences; user_id is the Telegram id as text"""
    user_id: str = ""
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    country: Optional[str] = None
    currency: str = "USD"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.user_id

    def to_dict(self) -> dict:
        return {
            'user_id': self.user_id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'country': self.country,
            'currency': self.currency,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Profile':
        return cls(
            user_id=str(data['user_id']),
            email=data.get('email'),
            first_name=data.get('first_name'),
            last_name=data.get('last_name'),
            country=data.get('country'),
            currency=data.get('currency') or 'USD',
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at'))
        )
