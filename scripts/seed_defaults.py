"""
Seed expense categories, default spending habits and baseline location expenses

Usage: python -m scripts.seed_defaults
"""
import asyncio
import sys
from decimal import Decimal

from models.spending_habit import GLOBAL_COUNTRY
from services.database_service import db_service
from services.spending_habit_service import spending_habit_service
from tax import tax_strategy_factory
from utils import logger, FinAssistException
from utils.expense_validation import CATEGORY_METADATA

# (country, state, type, amount, currency, is_flexible, reduction_potential, description)
LOCATION_EXPENSES = [
    ('US', None, 'housing', 1500, 'USD', False, 0.10, 'Average monthly rent/mortgage'),
    ('US', None, 'food', 400, 'USD', True, 0.40, 'Groceries and dining out'),
    ('US', None, 'transport', 300, 'USD', True, 0.25, 'Gas, public transport, car maintenance'),
    ('US', None, 'utilities', 200, 'USD', False, 0.10, 'Electricity, water, internet'),
    ('US', None, 'healthcare', 150, 'USD', False, 0.15, 'Insurance, medical expenses'),
    ('US', None, 'entertainment', 250, 'USD', True, 0.60, 'Movies, dining out, hobbies'),
    ('US', None, 'other', 200, 'USD', True, 0.70, 'Shopping, personal care, miscellaneous'),
    ('US', 'CA', 'housing', 2500, 'USD', False, 0.05, 'High cost housing in California'),
    ('US', 'CA', 'food', 600, 'USD', True, 0.35, 'Higher food costs in California'),
    ('US', 'CA', 'transport', 400, 'USD', True, 0.20, 'Higher transport costs'),
    ('US', 'CA', 'utilities', 250, 'USD', False, 0.10, 'Higher utility costs'),
    ('US', 'CA', 'healthcare', 200, 'USD', False, 0.15, 'Healthcare costs'),
    ('US', 'CA', 'entertainment', 350, 'USD', True, 0.60, 'Entertainment and dining'),
    ('US', 'CA', 'other', 300, 'USD', True, 0.70, 'Other expenses'),
    ('IN', None, 'housing', 25000, 'INR', False, 0.10, 'Average monthly rent'),
    ('IN', None, 'food', 8000, 'INR', True, 0.40, 'Groceries and dining'),
    ('IN', None, 'transport', 3000, 'INR', True, 0.25, 'Public transport, fuel'),
    ('IN', None, 'utilities', 2000, 'INR', False, 0.10, 'Electricity, water, internet'),
    ('IN', None, 'healthcare', 1500, 'INR', False, 0.15, 'Medical expenses'),
    ('IN', None, 'entertainment', 5000, 'INR', True, 0.60, 'Movies, dining, shopping'),
    ('IN', None, 'other', 4000, 'INR', True, 0.70, 'Personal care, miscellaneous'),
]


async def seed_categories() -> int:
    added = 0
    for meta in CATEGORY_METADATA.values():
        result = await db_service.execute(
            """
            INSERT INTO expense_categories (name, icon, color, is_default)
            VALUES ($1, $2, $3, TRUE)
            ON CONFLICT (name) DO NOTHING
            """,
            meta.name, meta.icon, meta.color
        )
        if result.endswith(" 1"):
            added += 1
    return added


async def seed_habits() -> int:
    added = 0
    for code in [*tax_strategy_factory.supported_countries(), GLOBAL_COUNTRY]:
        added += await spending_habit_service.ensure_default_habits(code)
    return added


async def seed_location_expenses() -> int:
    added = 0
    async with db_service.transaction() as conn:
        for country, state, expense_type, amount, currency, flexible, reduction, description in LOCATION_EXPENSES:
            exists = await conn.fetchval(
                """
                SELECT COUNT(*) FROM location_expenses
                WHERE country_code = $1 AND state_code IS NOT DISTINCT FROM $2
                  AND city_code IS NULL AND expense_type = $3
                """,
                country, state, expense_type
            )
            if exists:
                continue
            await conn.execute(
                """
                INSERT INTO location_expenses
                    (country_code, state_code, expense_type, estimated_amount, currency,
                     is_flexible, reduction_potential, description)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                country, state, expense_type, Decimal(str(amount)), currency, flexible,
                Decimal(str(reduction)), description
            )
            added += 1
    return added


async def seed():
    await db_service.initialize()
    try:
        await db_service.init_schema()
        logger.info(f"Categories added: {await seed_categories()}")
        logger.info(f"Default habits added: {await seed_habits()}")
        logger.info(f"Location expenses added: {await seed_location_expenses()}")
    finally:
        await db_service.close()


def main():
    try:
        asyncio.run(seed())
    except FinAssistException as e:
        logger.error(f"Seeding failed: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
