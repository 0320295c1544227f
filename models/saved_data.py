"""
Saved user data (tax calculations and other named snapshots)
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from models.fields import parse_datetime, parse_json, iso


@dataclass
class SavedData:
    id: Optional[int] = None
    user_id: str = ""
    data_type: str = ""
    data_name: str = ""
    data_content: Dict[str, Any] = field(default_factory=dict)
    is_favorite: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'data_type': self.data_type,
            'data_name': self.data_name,
            'data_content': self.data_content,
            'is_favorite': self.is_favorite,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SavedData':
        return cls(
            id=data.get('id'),
            user_id=str(data['user_id']),
            data_type=data['data_type'],
            data_name=data['data_name'],
            data_content=parse_json(data.get('data_content'), {}) or {},
            is_favorite=bool(data.get('is_favorite', False)),
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at'))
        )
