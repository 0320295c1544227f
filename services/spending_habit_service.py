"""
Spending habit profiles (expense multipliers) per user and location
"""
from decimal import Decimal
from typing import List, Optional, Union

from models import SpendingHabit
from models.spending_habit import (
    HABIT_TYPES, DEFAULT_MULTIPLIERS, DEFAULT_USER_ID, GLOBAL_COUNTRY
)
from services.database_service import db_service
from utils import logger, DatabaseError, ValidationError, Validator

MIN_MULTIPLIER = Decimal('0.1')
MAX_MULTIPLIER = Decimal('5.0')

TYPE_ORDER = {'conservative': 0, 'moderate': 1, 'liberal': 2, 'custom': 3}

DEFAULT_HABITS = (
    ('Conservative', 'conservative', 'Spend less than the local average'),
    ('Moderate', 'moderate', 'Spend around the local average'),
    ('Liberal', 'liberal', 'Spend more than the local average'),
)


def _sort_key(habit: SpendingHabit):
    return TYPE_ORDER.get(habit.habit_type, 4), habit.name.lower()


def build_default_habits(country_code: str = GLOBAL_COUNTRY,
                         state_code: Optional[str] = None) -> List[SpendingHabit]:
    """In-memory defaults used when nothing is stored"""
    return [
        SpendingHabit(
            user_id=DEFAULT_USER_ID,
            country_code=country_code,
            state_code=state_code,
            name=name,
            habit_type=habit_type,
            expense_multiplier=DEFAULT_MULTIPLIERS[habit_type],
            description=description,
            is_default=True
        )
        for name, habit_type, description in DEFAULT_HABITS
    ]


class SpendingHabitService:
    """Spending habit CRUD and lookups with location fallback"""

    @staticmethod
    def _validate_multiplier(value: Union[Decimal, float, str]) -> Decimal:
        multiplier = Validator.validate_numeric(value, float(MIN_MULTIPLIER), float(MAX_MULTIPLIER))
        return Decimal(str(multiplier)).quantize(Decimal('0.01'))

    async def get_spending_habits(self, user_id: str, country_code: str,
                                  state_code: Optional[str] = None) -> List[SpendingHabit]:
        """The user's habits for a state, falling back to the country level"""
        try:
            if state_code:
                rows = await db_service.fetch_all(
                    """
                    SELECT * FROM spending_habits
                    WHERE user_id = $1 AND country_code = $2 AND state_code = $3
                    ORDER BY habit_type
                    """,
                    user_id, country_code, state_code
                )
                if rows:
                    return [SpendingHabit.from_dict(dict(r)) for r in rows]

            rows = await db_service.fetch_all(
                """
                SELECT * FROM spending_habits
                WHERE user_id = $1 AND country_code = $2 AND state_code IS NULL
                ORDER BY habit_type
                """,
                user_id, country_code
            )
            return [SpendingHabit.from_dict(dict(r)) for r in rows]

        except Exception as e:
            logger.error(f"Failed to get spending habits for {user_id}: {e}")
            raise DatabaseError(f"Failed to get spending habits: {e}")

    async def get_default_spending_habits(self, country_code: str,
                                          state_code: Optional[str] = None) -> List[SpendingHabit]:
        """Stored defaults for state, then country, then GLOBAL; built in memory if none exist"""
        query = """
            SELECT * FROM spending_habits
            WHERE user_id = $1 AND country_code = $2 AND is_default = TRUE AND {state}
            ORDER BY habit_type
        """
        try:
            if state_code:
                rows = await db_service.fetch_all(
                    query.format(state="state_code = $3"), DEFAULT_USER_ID, country_code, state_code
                )
                if rows:
                    return [SpendingHabit.from_dict(dict(r)) for r in rows]

            for code in (country_code, GLOBAL_COUNTRY):
                rows = await db_service.fetch_all(
                    query.format(state="state_code IS NULL"), DEFAULT_USER_ID, code
                )
                if rows:
                    return [SpendingHabit.from_dict(dict(r)) for r in rows]

            logger.info(f"No stored default habits for {country_code}, using built-in defaults")
            return build_default_habits(country_code, state_code)

        except Exception as e:
            logger.error(f"Failed to get default spending habits for {country_code}: {e}")
            raise DatabaseError(f"Failed to get default spending habits: {e}")

    async def create_spending_habit(self, user_id: str, country_code: str, name: str,
                                    expense_multiplier: Union[Decimal, float, str],
                                    habit_type: str = 'custom', state_code: Optional[str] = None,
                                    description: Optional[str] = None) -> SpendingHabit:
        if habit_type not in HABIT_TYPES:
            raise ValidationError(f"Unknown habit type: {habit_type}")
        name = Validator.validate_length(Validator.sanitize_string(name), 1, 255, "Name")
        multiplier = self._validate_multiplier(expense_multiplier)
        try:
            row = await db_service.fetch_one(
                """
                INSERT INTO spending_habits
                    (user_id, country_code, state_code, name, habit_type,
                     expense_multiplier, description, is_default)
                VALUES ($1, $2, $3, $4, $5, $6, $7, FALSE)
                RETURNING *
                """,
                user_id, country_code, state_code, name, habit_type, multiplier,
                Validator.sanitize_string(description) if description else None
            )
            logger.info(f"Created spending habit '{name}' for user {user_id}")
            return SpendingHabit.from_dict(dict(row))
        except Exception as e:
            logger.error(f"Failed to create spending habit for {user_id}: {e}")
            raise DatabaseError(f"Failed to create spending habit: {e}")

    async def update_spending_habit(self, habit_id: int, name: Optional[str] = None,
                                    expense_multiplier: Union[Decimal, float, str, None] = None,
                                    description: Optional[str] = None) -> Optional[SpendingHabit]:
        updates = {}
        if name:
            updates['name'] = Validator.validate_length(Validator.sanitize_string(name), 1, 255, "Name")
        if expense_multiplier is not None:
            updates['expense_multiplier'] = self._validate_multiplier(expense_multiplier)
        if description is not None:
            updates['description'] = Validator.sanitize_string(description)
        if not updates:
            raise ValidationError("Nothing to update")

        set_parts = [f"{key} = ${i}" for i, key in enumerate(updates, start=1)]
        set_parts.append("updated_at = NOW()")
        query = f"""
            UPDATE spending_habits SET {', '.join(set_parts)}
            WHERE id = ${len(updates) + 1}
            RETURNING *
        """
        try:
            row = await db_service.fetch_one(query, *updates.values(), habit_id)
            if not row:
                return None
            logger.info(f"Updated spending habit {habit_id}")
            return SpendingHabit.from_dict(dict(row))
        except Exception as e:
            logger.error(f"Failed to update spending habit {habit_id}: {e}")
            raise DatabaseError(f"Failed to update spending habit: {e}")

    async def delete_spending_habit(self, habit_id: int) -> bool:
        try:
            result = await db_service.execute("DELETE FROM spending_habits WHERE id = $1", habit_id)
            deleted = "DELETE 1" in result
            if deleted:
                logger.info(f"Deleted spending habit {habit_id}")
            return deleted
        except Exception as e:
            logger.error(f"Failed to delete spending habit {habit_id}: {e}")
            raise DatabaseError(f"Failed to delete spending habit: {e}")

    async def get_all_user_spending_habits(self, user_id: str) -> List[SpendingHabit]:
        try:
            rows = await db_service.fetch_all(
                """
                SELECT * FROM spending_habits WHERE user_id = $1
                ORDER BY country_code, state_code NULLS FIRST, name
                """,
                user_id
            )
            return [SpendingHabit.from_dict(dict(r)) for r in rows]
        except Exception as e:
            logger.error(f"Failed to get spending habits for {user_id}: {e}")
            raise DatabaseError(f"Failed to get spending habits: {e}")

    async def get_spending_habits_for_dropdown(self, user_id: str, country_code: str,
                                               state_code: Optional[str] = None) -> List[SpendingHabit]:
        """Defaults plus the user's custom habits from state, country and global level"""
        defaults = await self.get_default_spending_habits(country_code, state_code)
        custom_query = """
            SELECT * FROM spending_habits
            WHERE user_id = $1 AND country_code = $2 AND habit_type = 'custom' AND {state}
            ORDER BY name
        """
        custom: List[SpendingHabit] = []
        try:
            if state_code:
                rows = await db_service.fetch_all(
                    custom_query.format(state="state_code = $3"), user_id, country_code, state_code
                )
                custom.extend(SpendingHabit.from_dict(dict(r)) for r in rows)
            for code in (country_code, GLOBAL_COUNTRY):
                rows = await db_service.fetch_all(
                    custom_query.format(state="state_code IS NULL"), user_id, code
                )
                custom.extend(SpendingHabit.from_dict(dict(r)) for r in rows)
        except Exception as e:
            logger.error(f"Failed to get custom habits for {user_id}: {e}")
            raise DatabaseError(f"Failed to get spending habits: {e}")

        return sorted(defaults + custom, key=_sort_key)

    async def ensure_default_habits(self, country_code: str, state_code: Optional[str] = None) -> int:
        """Store the three default habits for a location if missing; returns how many were added"""
        try:
            added = 0
            async with db_service.transaction() as conn:
                for habit in build_default_habits(country_code, state_code):
                    exists = await conn.fetchval(
                        """
                        SELECT COUNT(*) FROM spending_habits
                        WHERE user_id = $1 AND country_code = $2 AND habit_type = $3
                          AND is_default = TRUE AND state_code IS NOT DISTINCT FROM $4
                        """,
                        DEFAULT_USER_ID, country_code, habit.habit_type, state_code
                    )
                    if exists:
                        continue
                    await conn.execute(
                        """
                        INSERT INTO spending_habits
                            (user_id, country_code, state_code, name, habit_type,
                             expense_multiplier, description, is_default)
                        VALUES ($1, $2, $3, $4, $5, $6, $7, TRUE)
                        """,
                        DEFAULT_USER_ID, country_code, state_code, habit.name,
                        habit.habit_type, habit.expense_multiplier, habit.description
                    )
                    added += 1
            if added:
                logger.info(f"Seeded {added} default habits for {country_code}/{state_code or '-'}")
            return added
        except Exception as e:
            logger.error(f"Failed to seed default habits for {country_code}: {e}")
            raise DatabaseError(f"Failed to seed default habits: {e}")


spending_habit_service = SpendingHabitService()
