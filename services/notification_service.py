"""
In-app notifications
"""
import json
import random
import string
import time
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from models import Notification
from models.notification import NOTIFICATION_TYPES, NOTIFICATION_PRIORITIES
from services.database_service import db_service
from utils import logger, DatabaseError, ValidationError

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_notification_id() -> str:
    suffix = ''.join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"notification_{int(time.time() * 1000)}_{suffix}"


class NotificationService:
    """Notification storage and read state"""

    async def create_notification(self, user_id: str, title: str, message: str,
                                  type: str = "info", priority: str = "medium",
                                  metadata: Optional[Dict[str, Any]] = None) -> Notification:
        if type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {type}")
        if priority not in NOTIFICATION_PRIORITIES:
            raise ValidationError(f"Unknown notification priority: {priority}")

        try:
            row = await db_service.fetch_one(
                """
                INSERT INTO notifications (id, user_id, title, message, type, priority, metadata)
                VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb)
                RETURNING *
                """,
                generate_notification_id(), user_id, title, message, type, priority,
                json.dumps(metadata or {}, default=str)
            )
            logger.info(f"Created {type} notification for user {user_id}: {title}")
            return Notification.from_dict(dict(row))
        except Exception as e:
            logger.error(f"Failed to create notification: {e}")
            raise DatabaseError(f"Failed to create notification: {e}")

    async def get_user_notifications(self, user_id: str, limit: int = 50, offset: int = 0) -> List[Notification]:
        try:
            rows = await db_service.fetch_all(
                """
                SELECT * FROM notifications WHERE user_id = $1
                ORDER BY created_at DESC
                LIMIT $2 OFFSET $3
                """,
                user_id, limit, offset
            )
            return [Notification.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get notifications for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get notifications: {e}")

    async def get_unread_notifications(self, user_id: str) -> List[Notification]:
        try:
            rows = await db_service.fetch_all(
                """
                SELECT * FROM notifications
                WHERE user_id = $1 AND is_read = FALSE AND is_dismissed = FALSE
                ORDER BY created_at DESC
                """,
                user_id
            )
            return [Notification.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get unread notifications for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get unread notifications: {e}")

    async def _set_flag(self, notification_id: str, column: str) -> bool:
        try:
            result = await db_service.execute(
                f"UPDATE notifications SET {column} = TRUE, updated_at = NOW() WHERE id = $1",
                notification_id
            )
            return "UPDATE 1" in result
        except Exception as e:
            logger.error(f"Failed to update notification {notification_id}: {e}")
            raise DatabaseError(f"Failed to update notification: {e}")

    async def mark_as_read(self, notification_id: str) -> bool:
        return await self._set_flag(notification_id, "is_read")

    async def dismiss_notification(self, notification_id: str) -> bool:
        return await self._set_flag(notification_id, "is_dismissed")

    async def mark_multiple_as_read(self, notification_ids: Iterable[str]) -> int:
        ids = list(notification_ids)
        if not ids:
            return 0
        try:
            result = await db_service.execute(
                "UPDATE notifications SET is_read = TRUE, updated_at = NOW() WHERE id = ANY($1::text[])",
                ids
            )
            return int(result.split()[-1]) if result else 0
        except Exception as e:
            logger.error(f"Failed to mark notifications as read: {e}")
            raise DatabaseError(f"Failed to mark notifications as read: {e}")

    async def delete_notification(self, notification_id: str) -> bool:
        try:
            result = await db_service.execute("DELETE FROM notifications WHERE id = $1", notification_id)
            return "DELETE 1" in result
        except Exception as e:
            logger.error(f"Failed to delete notification {notification_id}: {e}")
            raise DatabaseError(f"Failed to delete notification: {e}")

    async def get_notification_stats(self, user_id: str) -> Dict[str, Any]:
        try:
            rows = await db_service.fetch_all(
                "SELECT type, priority, is_read, is_dismissed FROM notifications WHERE user_id = $1",
                user_id
            )
        except Exception as e:
            logger.error(f"Failed to get notification stats for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get notification stats: {e}")

        return {
            'total': len(rows),
            'unread': sum(1 for r in rows if not r['is_read'] and not r['is_dismissed']),
            'dismissed': sum(1 for r in rows if r['is_dismissed']),
            'by_type': dict(Counter(r['type'] for r in rows)),
            'by_priority': dict(Counter(r['priority'] for r in rows))
        }

    async def send_push_notification(self, user_id: str, title: str, message: str) -> bool:
        logger.info(f"Push notification for user {user_id}: {title} - {message}")
        return True

    async def notify_triggered_alerts(self, user_id: str, triggered: Iterable[Any]) -> List[Notification]:
        """One warning per TriggeredAlert"""
        created = []
        for item in triggered:
            alert = item.alert
            scope = alert.category_name or "total"
            created.append(await self.create_notification(
                user_id,
                title="Spending alert",
                message=(f"Your {alert.period} {scope} spending reached {item.spent:.2f} "
                         f"of the {item.threshold:.2f} limit ({item.percentage:.0f}%)"),
                type="warning",
                priority="high" if item.percentage >= 100 else "medium",
                metadata={'alert_id': alert.id, 'spent': str(item.spent)}
            ))
        return created


notification_service = NotificationService()
