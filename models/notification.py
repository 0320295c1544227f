"""
In-app notification model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from models.fields import parse_datetime, parse_json, iso

NOTIFICATION_TYPES = ('info', 'success', 'warning', 'error')
NOTIFICATION_PRIORITIES = ('low', 'medium', 'high', 'critical')


@dataclass
class Notification:
    id: str = ""
    user_id: str = ""
    title: str = ""
    message: str = ""
    type: str = "info"
    priority: str = "medium"
    is_read: bool = False
    is_dismissed: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'priority': self.priority,
            'is_read': self.is_read,
            'is_dismissed': self.is_dismissed,
            'metadata': dict(self.metadata),
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Notification':
        return cls(
            id=data['id'],
            user_id=str(data['user_id']),
            title=data.get('title', ''),
            message=data.get('message', ''),
            type=data.get('type') or 'info',
            priority=data.get('priority') or 'medium',
            is_read=bool(data.get('is_read', False)),
            is_dismissed=bool(data.get('is_dismissed', False)),
            metadata=parse_json(data.get('metadata'), {}) or {},
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at'))
        )
