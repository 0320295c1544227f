"""
Budgets and budget progress
"""
import calendar
from typing import Optional, List, Dict, Any, Iterable, Tuple
from datetime import date
from decimal import Decimal

from models import Budget, BudgetProgress
from models.budget import BUDGET_PERIODS
from services.database_service import db_service
from utils import logger, DatabaseError, ValidationError, Validator

BUDGET_SELECT = """
    SELECT b.*, c.name AS category_name
    FROM budgets b
    LEFT JOIN expense_categories c ON c.id = b.category_id
"""


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


class BudgetService:
    """Budget CRUD and spending progress"""

    async def create_budget(self, user_id: str, category_id: Optional[int], amount: Any,
                            start_date: Any, end_date: Any, period: str = 'monthly') -> Budget:
        amount = Validator.validate_amount(amount)
        start_date = Validator.validate_date(start_date)
        end_date = Validator.validate_date(end_date)
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        if period not in BUDGET_PERIODS:
            raise ValidationError(f"Invalid budget period. Valid periods: {', '.join(BUDGET_PERIODS)}")

        try:
            row = await db_service.fetch_one(
                """
                INSERT INTO budgets (user_id, category_id, amount, period, start_date, end_date)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                """,
                user_id, category_id, amount, period, start_date, end_date
            )
            if not row:
                raise DatabaseError("Failed to create budget")
            logger.info(f"Created {period} budget of {amount} for user {user_id}")
            return Budget.from_dict(dict(row))
        except Exception as e:
            logger.error(f"Failed to create budget: {e}")
            raise DatabaseError(f"Failed to create budget: {e}")

    async def get_budgets(self, user_id: str) -> List[Budget]:
        try:
            rows = await db_service.fetch_all(
                f"{BUDGET_SELECT} WHERE b.user_id = $1 ORDER BY b.start_date DESC, b.id",
                user_id
            )
            return [Budget.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get budgets for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get budgets: {e}")

    async def get_budget(self, budget_id: int) -> Optional[Budget]:
        try:
            row = await db_service.fetch_one(f"{BUDGET_SELECT} WHERE b.id = $1", budget_id)
            return Budget.from_dict(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Failed to get budget {budget_id}: {e}")
            raise DatabaseError(f"Failed to get budget: {e}")

    async def get_budgets_by_period(self, user_id: str, period: str) -> List[Budget]:
        try:
            rows = await db_service.fetch_all(
                f"{BUDGET_SELECT} WHERE b.user_id = $1 AND b.period = $2 ORDER BY b.start_date DESC",
                user_id, period
            )
            return [Budget.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get {period} budgets for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get budgets: {e}")

    async def update_budget(self, budget_id: int, **kwargs) -> Optional[Budget]:
        updates = {k: v for k, v in kwargs.items()
                   if k in ('category_id', 'amount', 'period', 'start_date', 'end_date')}
        if not updates:
            raise ValidationError("No fields to update")
        if 'amount' in updates:
            updates['amount'] = Validator.validate_amount(updates['amount'])
        for key in ('start_date', 'end_date'):
            if key in updates:
                updates[key] = Validator.validate_date(updates[key])
        if 'period' in updates and updates['period'] not in BUDGET_PERIODS:
            raise ValidationError(f"Invalid budget period. Valid periods: {', '.join(BUDGET_PERIODS)}")

        set_parts = [f"{key} = ${i}" for i, key in enumerate(updates, start=1)]
        query = f"""
            UPDATE budgets
            SET {', '.join(set_parts)}
            WHERE id = ${len(updates) + 1}
            RETURNING *
        """
        try:
            row = await db_service.fetch_one(query, *updates.values(), budget_id)
            if row:
                logger.info(f"Updated budget {budget_id}")
                return Budget.from_dict(dict(row))
            return None
        except Exception as e:
            logger.error(f"Failed to update budget {budget_id}: {e}")
            raise DatabaseError(f"Failed to update budget: {e}")

    async def delete_budget(self, budget_id: int) -> bool:
        try:
            result = await db_service.execute("DELETE FROM budgets WHERE id = $1", budget_id)
            if "DELETE 1" in result:
                logger.info(f"Deleted budget {budget_id}")
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to delete budget {budget_id}: {e}")
            raise DatabaseError(f"Failed to delete budget: {e}")

    async def _spent(self, budget: Budget) -> Decimal:
        """Spending in the budget's category between its dates"""
        if budget.category_id is None:
            query = """
                SELECT COALESCE(SUM(amount), 0) FROM expenses
                WHERE user_id = $1 AND expense_date BETWEEN $2 AND $3
            """
            args = (budget.user_id, budget.start_date, budget.end_date)
        else:
            query = """
                SELECT COALESCE(SUM(amount), 0) FROM expenses
                WHERE user_id = $1 AND category_id = $4 AND expense_date BETWEEN $2 AND $3
            """
            args = (budget.user_id, budget.start_date, budget.end_date, budget.category_id)
        value = await db_service.fetch_val(query, *args)
        return Decimal(str(value or 0))

    async def get_budget_progress(self, user_id: str) -> List[BudgetProgress]:
        budgets = await self.get_budgets(user_id)
        try:
            return [BudgetProgress(budget=b, spent=await self._spent(b)) for b in budgets]
        except Exception as e:
            logger.error(f"Failed to compute budget progress for {user_id}: {e}")
            raise DatabaseError(f"Failed to compute budget progress: {e}")

    async def create_monthly_budget_template(self, user_id: str, year: int, month: int,
                                             items: Iterable[Dict[str, Any]]) -> List[Budget]:
        """One monthly budget per {'category_id', 'amount'} item"""
        start, end = month_bounds(year, month)
        created = []
        for item in items:
            created.append(await self.create_budget(
                user_id, item.get('category_id'), item['amount'], start, end, 'monthly'
            ))
        return created

    async def get_budget_alerts(self, user_id: str, threshold: float = 80) -> List[BudgetProgress]:
        """Budgets at or above threshold percent used, or over budget"""
        return [
            p for p in await self.get_budget_progress(user_id)
            if p.is_over_budget or p.percentage_used >= threshold
        ]

    async def copy_budget_from_previous_month(self, user_id: str, year: int, month: int) -> List[Budget]:
        prev_year, prev_month = previous_month(year, month)
        prev_start, prev_end = month_bounds(prev_year, prev_month)
        try:
            rows = await db_service.fetch_all(
                """
                SELECT * FROM budgets
                WHERE user_id = $1 AND period = 'monthly' AND start_date = $2 AND end_date = $3
                """,
                user_id, prev_start, prev_end
            )
        except Exception as e:
            logger.error(f"Failed to read budgets of {prev_month:02d}/{prev_year}: {e}")
            raise DatabaseError(f"Failed to copy budgets: {e}")

        items = [{'category_id': row['category_id'], 'amount': row['amount']} for row in rows]
        if not items:
            logger.info(f"No budgets to copy from {prev_month:02d}/{prev_year} for user {user_id}")
            return []
        return await self.create_monthly_budget_template(user_id, year, month, items)


budget_service = BudgetService()
