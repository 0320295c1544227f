"""
Spending alerts: thresholds on spending per period
"""
import calendar
from collections import Counter
from typing import Optional, List, Dict, Any, Iterable
from datetime import date, timedelta
from decimal import Decimal

from models import SpendingAlert, TriggeredAlert
from models.alert import ALERT_PERIODS
from services.database_service import db_service
from utils import logger, DatabaseError, ValidationError, Validator

ALERT_SELECT = """
    SELECT a.*, c.name AS category_name
    FROM spending_alerts a
    LEFT JOIN expense_categories c ON c.id = a.category_id
"""

NEAR_THRESHOLD_PERCENT = 90


def period_start(period: str, today: date) -> date:
    """First day counted for an alert period ending today"""
    if period == 'weekly':
        return today - timedelta(days=7)
    if period == 'monthly':
        year, month = (today.year - 1, 12) if today.month == 1 else (today.year, today.month - 1)
        day = min(today.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)
    return today


class AlertService:
    """Spending alert CRUD and evaluation"""

    @staticmethod
    def _check_period(period: str):
        if period not in ALERT_PERIODS:
            raise ValidationError(f"Invalid alert period. Valid periods: {', '.join(ALERT_PERIODS)}")

    async def get_alerts(self, user_id: str) -> List[SpendingAlert]:
        try:
            rows = await db_service.fetch_all(
                f"{ALERT_SELECT} WHERE a.user_id = $1 ORDER BY a.created_at DESC", user_id
            )
            return [SpendingAlert.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get alerts for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get alerts: {e}")

    async def get_active_alerts(self, user_id: str) -> List[SpendingAlert]:
        try:
            rows = await db_service.fetch_all(
                f"{ALERT_SELECT} WHERE a.user_id = $1 AND a.active = TRUE ORDER BY a.created_at DESC",
                user_id
            )
            return [SpendingAlert.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get active alerts for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get active alerts: {e}")

    async def create_alert(self, user_id: str, category_id: Optional[int], threshold: Any,
                           period: str = 'monthly', active: bool = True) -> SpendingAlert:
        threshold = Validator.validate_amount(threshold)
        self._check_period(period)
        try:
            row = await db_service.fetch_one(
                """
                INSERT INTO spending_alerts (user_id, category_id, threshold, period, active)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
                """,
                user_id, category_id, threshold, period, active
            )
            logger.info(f"Created {period} alert ({threshold}) for user {user_id}")
            return SpendingAlert.from_dict(dict(row))
        except Exception as e:
            logger.error(f"Failed to create alert: {e}")
            raise DatabaseError(f"Failed to create alert: {e}")

    async def update_alert(self, alert_id: int, **kwargs) -> Optional[SpendingAlert]:
        updates = {k: v for k, v in kwargs.items() if k in ('category_id', 'threshold', 'period', 'active')}
        if not updates:
            raise ValidationError("No fields to update")
        if 'threshold' in updates:
            updates['threshold'] = Validator.validate_amount(updates['threshold'])
        if 'period' in updates:
            self._check_period(updates['period'])

        set_parts = [f"{key} = ${i}" for i, key in enumerate(updates, start=1)]
        query = f"""
            UPDATE spending_alerts
            SET {', '.join(set_parts)}
            WHERE id = ${len(updates) + 1}
            RETURNING *
        """
        try:
            row = await db_service.fetch_one(query, *updates.values(), alert_id)
            if row:
                logger.info(f"Updated alert {alert_id}")
                return SpendingAlert.from_dict(dict(row))
            return None
        except Exception as e:
            logger.error(f"Failed to update alert {alert_id}: {e}")
            raise DatabaseError(f"Failed to update alert: {e}")

    async def delete_alert(self, alert_id: int) -> bool:
        try:
            result = await db_service.execute("DELETE FROM spending_alerts WHERE id = $1", alert_id)
            if "DELETE 1" in result:
                logger.info(f"Deleted alert {alert_id}")
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to delete alert {alert_id}: {e}")
            raise DatabaseError(f"Failed to delete alert: {e}")

    async def toggle_alert(self, alert_id: int, active: bool) -> Optional[SpendingAlert]:
        return await self.update_alert(alert_id, active=active)

    async def _spent(self, alert: SpendingAlert, today: date) -> Decimal:
        start = period_start(alert.period, today)
        query = """
            SELECT COALESCE(SUM(amount), 0) FROM expenses
            WHERE user_id = $1 AND expense_date >= $2 AND expense_date <= $3
        """
        args: List[Any] = [alert.user_id, start, today]
        if alert.category_id:
            query += " AND category_id = $4"
            args.append(alert.category_id)
        value = await db_service.fetch_val(query, *args)
        return Decimal(str(value or 0))

    async def _evaluate(self, user_id: str, today: Optional[date]) -> List[TriggeredAlert]:
        today = today or date.today()
        alerts = await self.get_active_alerts(user_id)
        try:
            return [TriggeredAlert(alert=a, spent=await self._spent(a, today)) for a in alerts]
        except Exception as e:
            logger.error(f"Failed to evaluate alerts for user {user_id}: {e}")
            raise DatabaseError(f"Failed to check alerts: {e}")

    async def check_alerts(self, user_id: str, today: Optional[date] = None) -> List[TriggeredAlert]:
        """Active alerts whose period spending reached the threshold"""
        return [t for t in await self._evaluate(user_id, today) if t.spent >= t.threshold]

    async def get_near_threshold_alerts(self, user_id: str, today: Optional[date] = None) -> List[TriggeredAlert]:
        """Active alerts between 90% and 100% of their threshold"""
        return [
            t for t in await self._evaluate(user_id, today)
            if NEAR_THRESHOLD_PERCENT <= t.percentage < 100
        ]

    async def create_category_alert(self, user_id: str, category_id: int, threshold: Any,
                                    period: str = 'monthly') -> SpendingAlert:
        return await self.create_alert(user_id, category_id, threshold, period)

    async def create_general_alert(self, user_id: str, threshold: Any, period: str = 'monthly') -> SpendingAlert:
        return await self.create_alert(user_id, None, threshold, period)

    async def create_bulk_alerts(self, user_id: str, items: Iterable[Dict[str, Any]]) -> List[SpendingAlert]:
        return [
            await self.create_alert(user_id, item.get('category_id'), item['threshold'],
                                    item.get('period') or 'monthly')
            for item in items
        ]

    async def get_alert_stats(self, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        alerts = await self.get_alerts(user_id)
        active = [a for a in alerts if a.active]
        triggered = await self.check_alerts(user_id, today)
        return {
            'total_alerts': len(alerts),
            'active_alerts': len(active),
            'inactive_alerts': len(alerts) - len(active),
            'triggered_alerts': len(triggered),
            'by_period': dict(Counter(a.period for a in alerts))
        }

    async def deactivate_all_alerts(self, user_id: str) -> int:
        try:
            result = await db_service.execute(
                "UPDATE spending_alerts SET active = FALSE WHERE user_id = $1 AND active = TRUE", user_id
            )
            count = int(result.split()[-1]) if result else 0
            logger.info(f"Deactivated {count} alerts for user {user_id}")
            return count
        except Exception as e:
            logger.error(f"Failed to deactivate alerts for user {user_id}: {e}")
            raise DatabaseError(f"Failed to deactivate alerts: {e}")


alert_service = AlertService()
