"""
Expense CRUD, filtering, summaries and CSV export
"""
import calendar
import io
from typing import Optional, List, Dict, Any, Iterable
from datetime import date
from decimal import Decimal

import pandas as pd

from models import Expense, Category
from services.database_service import db_service
from utils import logger, DatabaseError, ValidationError, Validator
from utils.expense_validation import expense_validator, ExpenseCategory, get_category_metadata

EXPENSE_SELECT = """
    SELECT e.*, c.name AS category_name
    FROM expenses e
    LEFT JOIN expense_categories c ON c.id = e.category_id
"""

UPDATABLE_FIELDS = (
    'category_id', 'amount', 'currency', 'expense_date', 'description',
    'location', 'source', 'tags', 'receipt_url', 'is_recurring', 'recurring_interval'
)

EXPENSE_SOURCES = ('manual', 'import', 'recurring', 'receipt')


class ExpenseService:
    """User expenses"""

    async def get_categories(self) -> List[Category]:
        try:
            rows = await db_service.fetch_all(
                "SELECT * FROM expense_categories ORDER BY is_default DESC, name"
            )
            return [Category.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get expense categories: {e}")
            raise DatabaseError(f"Failed to get expense categories: {e}")

    async def get_category(self, category_id: int) -> Optional[Category]:
        try:
            row = await db_service.fetch_one("SELECT * FROM expense_categories WHERE id = $1", category_id)
            return Category.from_dict(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Failed to get expense category {category_id}: {e}")
            raise DatabaseError(f"Failed to get expense category: {e}")

    async def get_expense(self, expense_id: int) -> Optional[Expense]:
        try:
            row = await db_service.fetch_one(f"{EXPENSE_SELECT} WHERE e.id = $1", expense_id)
            return Expense.from_dict(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Failed to get expense {expense_id}: {e}")
            raise DatabaseError(f"Failed to get expense: {e}")

    async def get_expenses(self, user_id: str, filters: Optional[Dict[str, Any]] = None) -> List[Expense]:
        """
        Expenses of a user, newest first.

        Supported filters: start_date, end_date, category_id, min_amount,
        max_amount, source.
        """
        filters = filters or {}
        conditions = ["e.user_id = $1"]
        params: List[Any] = [user_id]

        def add(condition: str, value: Any):
            params.append(value)
            conditions.append(condition.format(f"${len(params)}"))

        if filters.get('start_date'):
            add("e.expense_date >= {}", Validator.validate_date(filters['start_date']))
        if filters.get('end_date'):
            add("e.expense_date <= {}", Validator.validate_date(filters['end_date']))
        if filters.get('category_id') is not None:
            add("e.category_id = {}", int(filters['category_id']))
        if filters.get('min_amount') is not None:
            add("e.amount >= {}", Decimal(str(filters['min_amount'])))
        if filters.get('max_amount') is not None:
            add("e.amount <= {}", Decimal(str(filters['max_amount'])))
        if filters.get('source'):
            add("e.source = {}", filters['source'])

        query = f"""
            {EXPENSE_SELECT}
            WHERE {' AND '.join(conditions)}
            ORDER BY e.expense_date DESC, e.created_at DESC
        """
        try:
            rows = await db_service.fetch_all(query, *params)
            return [Expense.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get expenses for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get expenses: {e}")

    async def get_expenses_by_month(self, user_id: str, year: int, month: int) -> List[Expense]:
        last_day = calendar.monthrange(year, month)[1]
        return await self.get_expenses(user_id, {
            'start_date': date(year, month, 1),
            'end_date': date(year, month, last_day)
        })

    async def _validate(self, user_id: str, data: Dict[str, Any], category_name: Optional[str],
                        exclude_id: Optional[int] = None) -> List[str]:
        """Raise ValidationError on invalid fields; return warning messages"""
        checked = dict(data)
        known = category_name is not None and get_category_metadata(category_name) is not None
        checked['category'] = category_name if known else ExpenseCategory.OTHER
        checked['date'] = data['expense_date']
        result = expense_validator.validate_expense(checked)
        if not result.is_valid:
            raise ValidationError("; ".join(result.messages))

        same_day = await db_service.fetch_all(
            f"{EXPENSE_SELECT} WHERE e.user_id = $1 AND e.expense_date = $2",
            user_id, data['expense_date']
        )
        existing = [
            {'amount': r['amount'], 'category': r['category_name'] or ExpenseCategory.OTHER,
             'date': r['expense_date']}
            for r in same_day if exclude_id is None or r['id'] != exclude_id
        ]
        result.merge(expense_validator.check_duplicate(checked, existing))
        return [w.message for w in result.warnings]

    async def create_expense(self, user_id: str, amount: Any, description: str,
                             category_id: Optional[int] = None, expense_date: Optional[date] = None,
                             currency: str = "USD", location: Optional[str] = None,
                             source: str = "manual", tags: Optional[Iterable[str]] = None,
                             receipt_url: Optional[str] = None, is_recurring: bool = False,
                             recurring_interval: Optional[str] = None) -> Expense:
        amount = Validator.validate_amount(amount)
        description = Validator.validate_description(description)
        expense_date = Validator.validate_date(expense_date) if expense_date else date.today()
        if source not in EXPENSE_SOURCES:
            raise ValidationError(f"Unknown expense source: {source}")

        category = None
        if category_id is not None:
            category = await self.get_category(category_id)
            if category is None:
                raise ValidationError(f"Category {category_id} does not exist")

        data = {
            'amount': amount,
            'currency': (currency or 'USD').upper(),
            'description': description,
            'expense_date': expense_date,
            'location': Validator.sanitize_string(location) or None,
            'tags': [Validator.sanitize_string(t, 50) for t in (tags or []) if t],
            'receipt_url': receipt_url,
            'is_recurring': is_recurring,
            'recurring_interval': recurring_interval if is_recurring else None,
        }

        try:
            warnings = await self._validate(user_id, data, category.name if category else None)
            for warning in warnings:
                logger.debug(f"Expense warning for user {user_id}: {warning}")

            row = await db_service.fetch_one(
                """
                INSERT INTO expenses
                    (user_id, category_id, amount, currency, expense_date, description,
                     location, source, tags, receipt_url, is_recurring, recurring_interval)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                RETURNING *
                """,
                user_id, category_id, data['amount'], data['currency'], data['expense_date'],
                data['description'], data['location'], source, data['tags'],
                data['receipt_url'], data['is_recurring'], data['recurring_interval']
            )
            if not row:
                raise DatabaseError("Failed to create expense")

            expense = Expense.from_dict(dict(row))
            expense.category_name = category.name if category else None
            logger.info(f"Created expense: {description} ({amount} {data['currency']}) for user {user_id}")
            return expense

        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Failed to create expense: {e}")
            raise DatabaseError(f"Failed to create expense: {e}")

    async def update_expense(self, expense_id: int, **kwargs) -> Optional[Expense]:
        updates = {k: v for k, v in kwargs.items() if k in UPDATABLE_FIELDS}
        if not updates:
            raise ValidationError("No fields to update")
        if 'amount' in updates:
            updates['amount'] = Validator.validate_amount(updates['amount'])
        if 'description' in updates:
            updates['description'] = Validator.validate_description(updates['description'])
        if 'expense_date' in updates:
            updates['expense_date'] = Validator.validate_date(updates['expense_date'])
        if 'currency' in updates:
            updates['currency'] = (updates['currency'] or 'USD').upper()
        if 'source' in updates and updates['source'] not in EXPENSE_SOURCES:
            raise ValidationError(f"Unknown expense source: {updates['source']}")

        existing = await self.get_expense(expense_id)
        if existing is None:
            return None

        category_name = existing.category_name
        if 'category_id' in updates:
            category_name = None
            if updates['category_id'] is not None:
                category = await self.get_category(updates['category_id'])
                if category is None:
                    raise ValidationError(f"Category {updates['category_id']} does not exist")
                category_name = category.name

        # the stored record with the changes applied
        merged = {name: getattr(existing, name) for name in UPDATABLE_FIELDS}
        merged.update(updates)

        set_parts = [f"{key} = ${i}" for i, key in enumerate(updates, start=1)]
        query = f"""
            UPDATE expenses
            SET {', '.join(set_parts)}
            WHERE id = ${len(updates) + 1}
            RETURNING *
        """
        try:
            warnings = await self._validate(existing.user_id, merged, category_name, exclude_id=expense_id)
            for warning in warnings:
                logger.debug(f"Expense {expense_id} warning: {warning}")

            row = await db_service.fetch_one(query, *updates.values(), expense_id)
            if row:
                logger.info(f"Updated expense {expense_id}")
                return Expense.from_dict(dict(row))
            return None
        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Failed to update expense {expense_id}: {e}")
            raise DatabaseError(f"Failed to update expense: {e}")

    async def delete_expense(self, expense_id: int) -> bool:
        try:
            result = await db_service.execute("DELETE FROM expenses WHERE id = $1", expense_id)
            if "DELETE 1" in result:
                logger.info(f"Deleted expense {expense_id}")
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to delete expense {expense_id}: {e}")
            raise DatabaseError(f"Failed to delete expense: {e}")

    async def get_expense_summary(self, user_id: str, start_date: Optional[date] = None,
                                  end_date: Optional[date] = None) -> Dict[str, Any]:
        """Totals per category for a period"""
        query = """
            SELECT
                COALESCE(c.name, 'Uncategorized') AS category,
                COUNT(*) AS count,
                SUM(e.amount) AS total_amount,
                AVG(e.amount) AS avg_amount
            FROM expenses e
            LEFT JOIN expense_categories c ON c.id = e.category_id
            WHERE e.user_id = $1
        """
        params: List[Any] = [user_id]
        if start_date:
            params.append(start_date)
            query += f" AND e.expense_date >= ${len(params)}"
        if end_date:
            params.append(end_date)
            query += f" AND e.expense_date <= ${len(params)}"
        query += " GROUP BY COALESCE(c.name, 'Uncategorized') ORDER BY total_amount DESC"

        try:
            rows = await db_service.fetch_all(query, *params)
            summary = {
                'categories': [],
                'total_amount': Decimal('0'),
                'total_count': 0
            }
            for row in rows:
                item = {
                    'category': row['category'],
                    'count': row['count'],
                    'total_amount': Decimal(str(row['total_amount'])),
                    'avg_amount': Decimal(str(row['avg_amount']))
                }
                summary['categories'].append(item)
                summary['total_amount'] += item['total_amount']
                summary['total_count'] += item['count']
            return summary
        except Exception as e:
            logger.error(f"Failed to build expense summary for {user_id}: {e}")
            raise DatabaseError(f"Failed to build expense summary: {e}")

    async def export_expenses_csv(self, user_id: str, path: str,
                                  start_date: Optional[date] = None,
                                  end_date: Optional[date] = None) -> int:
        """Write expenses to a CSV file; returns the number of rows"""
        expenses = await self.get_expenses(user_id, {'start_date': start_date, 'end_date': end_date})
        columns = ['expense_date', 'amount', 'currency', 'category_name', 'description', 'location', 'source']
        frame = pd.DataFrame([e.to_dict() for e in expenses], columns=columns)
        frame.rename(columns={'expense_date': 'date', 'category_name': 'category'}, inplace=True)
        try:
            frame.to_csv(path, index=False)
        except OSError as e:
            logger.error(f"Failed to write expense export to {path}: {e}")
            raise
        logger.info(f"Exported {len(frame)} expenses for user {user_id} to {path}")
        return len(frame)

    async def export_expenses_excel(self, user_id: str, start_date: Optional[date] = None,
                                    end_date: Optional[date] = None) -> io.BytesIO:
        """Expenses as an in-memory .xlsx workbook"""
        expenses = await self.get_expenses(user_id, {'start_date': start_date, 'end_date': end_date})
        frame = pd.DataFrame(
            [e.to_dict() for e in expenses],
            columns=['expense_date', 'amount', 'currency', 'category_name', 'description']
        )
        frame.columns = ['Date', 'Amount', 'Currency', 'Category', 'Description']
        buf = io.BytesIO()
        frame.to_excel(buf, index=False, engine='xlsxwriter')
        buf.seek(0)
        return buf


expense_service = ExpenseService()
