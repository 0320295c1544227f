"""
Cost-of-living estimates per location and spending-style projections
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Union

from models import (
    LocationExpense, HabitProfile, CalculatedExpense,
    ExpenseBreakdown, SpendingHabitResult
)
from models.location import EXPENSE_TYPES
from services.database_service import db_service
from utils import logger, DatabaseError
from utils.currency import format_currency, get_currency_symbol as _currency_symbol

DEFAULT_HABIT_PROFILES: List[HabitProfile] = [
    HabitProfile(
        name='Conservative',
        type='conservative',
        fixed_expense_reduction=0.10,
        flexible_expense_reduction=0.50,
        flexible_expense_increase=0.0,
        description='Minimal spending, maximum savings'
    ),
    HabitProfile(
        name='Moderate',
        type='moderate',
        fixed_expense_reduction=0.05,
        flexible_expense_reduction=0.25,
        flexible_expense_increase=0.0,
        description='Balanced spending and savings'
    ),
    HabitProfile(
        name='Liberal',
        type='liberal',
        fixed_expense_reduction=0.0,
        flexible_expense_reduction=0.0,
        flexible_expense_increase=0.20,
        description='Comfortable lifestyle, moderate savings'
    ),
]


class LocationExpenseService:
    """Location cost estimates"""

    async def get_location_expenses(self, country_code: str, state_code: Optional[str] = None,
                                    city_code: Optional[str] = None) -> List[LocationExpense]:
        """
        Most specific estimates available for a location.

        City rows are used when both state and city are given and rows exist,
        then state rows (city is null), then country rows (state and city null).
        """
        try:
            if city_code and state_code:
                rows = await db_service.fetch_all(
                    """
                    SELECT * FROM location_expenses
                    WHERE country_code = $1 AND state_code = $2 AND city_code = $3
                    """,
                    country_code, state_code, city_code
                )
                if rows:
                    logger.debug(f"City-level expenses for {country_code}/{state_code}/{city_code}: {len(rows)}")
                    return [LocationExpense.from_dict(dict(r)) for r in rows]

            if state_code:
                rows = await db_service.fetch_all(
                    """
                    SELECT * FROM location_expenses
                    WHERE country_code = $1 AND state_code = $2 AND city_code IS NULL
                    """,
                    country_code, state_code
                )
                if rows:
                    logger.debug(f"State-level expenses for {country_code}/{state_code}: {len(rows)}")
                    return [LocationExpense.from_dict(dict(r)) for r in rows]

            rows = await db_service.fetch_all(
                """
                SELECT * FROM location_expenses
                WHERE country_code = $1 AND state_code IS NULL AND city_code IS NULL
                """,
                country_code
            )
            return [LocationExpense.from_dict(dict(r)) for r in rows]

        except Exception as e:
            logger.error(f"Failed to fetch location expenses for {country_code}: {e}")
            raise DatabaseError(f"Failed to fetch location expenses: {e}")

    def get_default_spending_habits(self) -> List[HabitProfile]:
        return list(DEFAULT_HABIT_PROFILES)

    def calculate_expenses(self, location_expenses: Iterable[LocationExpense], habit: HabitProfile,
                           gross_monthly_income: float) -> SpendingHabitResult:
        """Adjust baseline costs for a spending style and project savings"""
        items: List[CalculatedExpense] = []
        total = 0.0
        total_savings = 0.0
        location_expenses = list(location_expenses)

        for expense in location_expenses:
            base = float(expense.estimated_amount)
            adjusted = base
            savings = 0.0

            if expense.is_flexible:
                if habit.flexible_expense_reduction > 0:
                    reduction = base * habit.flexible_expense_reduction
                    adjusted -= reduction
                    savings += reduction
                elif habit.flexible_expense_increase > 0:
                    increase = base * habit.flexible_expense_increase
                    adjusted += increase
                    savings -= increase
            elif habit.fixed_expense_reduction > 0:
                reduction = base * habit.fixed_expense_reduction
                adjusted -= reduction
                savings += reduction

            # An item can't be cut further than its reduction potential
            adjusted = max(adjusted, base * (1 - expense.reduction_potential))

            items.append(CalculatedExpense(
                type=expense.expense_type,
                base_amount=base,
                adjusted_amount=adjusted,
                currency=expense.currency,
                is_flexible=expense.is_flexible,
                reduction_potential=expense.reduction_potential,
                savings_potential=savings,
                description=expense.description or ''
            ))
            total += adjusted
            total_savings += savings

        by_type: Dict[str, float] = {}
        for item in items:
            by_type.setdefault(item.type, item.adjusted_amount)

        breakdown = ExpenseBreakdown(
            **{t: by_type.get(t, 0.0) for t in EXPENSE_TYPES},
            total=total,
            currency=location_expenses[0].currency if location_expenses else 'USD',
            savings_potential=total_savings,
            breakdown=items
        )

        monthly_savings = gross_monthly_income - total
        savings_rate = monthly_savings / gross_monthly_income * 100 if gross_monthly_income > 0 else 0.0

        return SpendingHabitResult(
            habit=habit,
            expenses=breakdown,
            total_savings=total_savings,
            monthly_savings=monthly_savings,
            annual_savings=monthly_savings * 12,
            savings_rate=savings_rate
        )

    def apply_spending_multiplier(self, location_expenses: Iterable[LocationExpense],
                                  multiplier: Union[Decimal, float]) -> List[LocationExpense]:
        """Copies of the estimates scaled by a spending habit factor"""
        factor = Decimal(str(multiplier))
        scaled = []
        for expense in location_expenses:
            scaled.append(LocationExpense(
                id=expense.id,
                country_code=expense.country_code,
                state_code=expense.state_code,
                city_code=expense.city_code,
                expense_type=expense.expense_type,
                estimated_amount=(expense.estimated_amount * factor).quantize(Decimal('0.01')),
                currency=expense.currency,
                is_flexible=expense.is_flexible,
                reduction_potential=expense.reduction_potential,
                description=expense.description
            ))
        return scaled

    def get_currency_symbol(self, currency_code: str) -> str:
        return _currency_symbol(currency_code)

    def format_amount(self, amount: float, currency_code: str) -> str:
        return format_currency(
            amount, currency_code,
            minimum_fraction_digits=0,
            maximum_fraction_digits=2
        )


location_expense_service = LocationExpenseService()
