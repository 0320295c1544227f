"""
Location, cost-of-living and spending habit tests
"""
from decimal import Decimal

import pytest

from models import LocationExpense
from services.location_expense_service import location_expense_service, DEFAULT_HABIT_PROFILES
from services.location_service import location_service
from services.spending_habit_service import spending_habit_service, build_default_habits
from utils import DatabaseError, ValidationError
from utils.cache import clear_cache

CONSERVATIVE, MODERATE, LIBERAL = DEFAULT_HABIT_PROFILES


def baseline():
    return [
        LocationExpense(country_code='US', expense_type='housing', estimated_amount=Decimal('1000'),
                        is_flexible=False, reduction_potential=0.10),
        LocationExpense(country_code='US', expense_type='food', estimated_amount=Decimal('400'),
                        is_flexible=True, reduction_potential=0.40),
    ]


def habit_row(name, habit_type, **extra):
    row = {'id': 1, 'user_id': 'default', 'country_code': 'US', 'name': name,
           'habit_type': habit_type, 'expense_multiplier': Decimal('1.00'), 'is_default': True}
    row.update(extra)
    return row


class TestCalculateExpenses:
    def test_conservative_is_capped_by_reduction_potential(self):
        result = location_expense_service.calculate_expenses(baseline(), CONSERVATIVE, 3000)
        expenses = result.expenses

        assert expenses.housing == pytest.approx(900)
        # 50% cut on food is limited to its 40% potential
        assert expenses.food == pytest.approx(240)
        assert expenses.transport == 0.0
        assert expenses.total == pytest.approx(1140)
        assert result.total_savings == pytest.approx(300)
        assert result.monthly_savings == pytest.approx(1860)
        assert result.annual_savings == pytest.approx(1860 * 12)
        assert result.savings_rate == pytest.approx(62.0)

    def test_liberal_increases_flexible_costs(self):
        result = location_expense_service.calculate_expenses(baseline(), LIBERAL, 3000)
        assert result.expenses.food == pytest.approx(480)
        assert result.expenses.housing == pytest.approx(1000)
        assert result.total_savings == pytest.approx(-80)

    def test_zero_income_has_zero_savings_rate(self):
        result = location_expense_service.calculate_expenses(baseline(), MODERATE, 0)
        assert result.savings_rate == 0.0
        assert result.monthly_savings < 0

    def test_empty_estimates(self):
        result = location_expense_service.calculate_expenses([], MODERATE, 1000)
        assert result.expenses.total == 0
        assert result.expenses.currency == 'USD'
        assert result.savings_rate == pytest.approx(100.0)


def test_apply_spending_multiplier_copies():
    original = baseline()
    scaled = location_expense_service.apply_spending_multiplier(original, Decimal('0.85'))
    assert [e.estimated_amount for e in scaled] == [Decimal('850.00'), Decimal('340.00')]
    assert original[0].estimated_amount == Decimal('1000')


def test_format_amount_trims_zero_cents():
    assert location_expense_service.format_amount(1500, 'USD') == "$1,500"
    assert location_expense_service.get_currency_symbol('GBP') == "£"


@pytest.mark.asyncio
async def test_location_expenses_fall_back_to_state_level(fake_db):
    """City rows missing, state rows present"""
    fake_db.queue('fetch_all', [], [{'country_code': 'US', 'state_code': 'CA',
                                      'expense_type': 'housing', 'estimated_amount': '2500.00'}])
    rows = await location_expense_service.get_location_expenses('US', 'CA', 'LA')

    assert len(rows) == 1
    assert rows[0].estimated_amount == Decimal('2500.00')
    queries = fake_db.queries('fetch_all')
    assert len(queries) == 2
    assert "city_code IS NULL" in queries[1]


@pytest.mark.asyncio
async def test_location_expenses_country_only(fake_db):
    await location_expense_service.get_location_expenses('IN')
    assert len(fake_db.calls) == 1
    assert "state_code IS NULL AND city_code IS NULL" in fake_db.calls[0][1]


@pytest.mark.asyncio
async def test_location_expenses_wraps_errors(fake_db):
    fake_db.queue('fetch_all', RuntimeError("connection lost"))
    with pytest.raises(DatabaseError, match="connection lost"):
        await location_expense_service.get_location_expenses('US')


@pytest.mark.asyncio
async def test_countries_are_cached(fake_db):
    clear_cache()
    fake_db.queue('fetch_all', [{'id': 1, 'code': 'US', 'name': 'United States'}])

    first = await location_service.get_countries()
    country = await location_service.get_country_by_code('us')

    assert [c.code for c in first] == ['US']
    assert country.name == 'United States'
    assert len(fake_db.calls) == 1
    clear_cache()


@pytest.mark.asyncio
async def test_search_cities_blank_query_skips_database(fake_db):
    assert await location_service.search_cities("  ") == []
    assert fake_db.calls == []


class TestSpendingHabits:
    def test_built_in_defaults(self):
        habits = build_default_habits('US')
        assert [h.habit_type for h in habits] == ['conservative', 'moderate', 'liberal']
        assert [h.expense_multiplier for h in habits] == [Decimal('0.85'), Decimal('1.00'), Decimal('1.25')]
        assert all(h.is_default and h.user_id == 'default' for h in habits)

    @pytest.mark.asyncio
    async def test_defaults_fall_back_to_global(self, fake_db):
        fake_db.queue('fetch_all', [], [], [habit_row('Moderate', 'moderate', country_code='GLOBAL')])
        habits = await spending_habit_service.get_default_spending_habits('US', 'CA')

        assert [h.country_code for h in habits] == ['GLOBAL']
        assert [args[1] for _, _, args in fake_db.calls] == ['US', 'US', 'GLOBAL']

    @pytest.mark.asyncio
    async def test_defaults_built_in_when_nothing_stored(self, fake_db):
        habits = await spending_habit_service.get_default_spending_habits('BR')
        assert len(habits) == 3
        assert habits[0].country_code == 'BR'

    @pytest.mark.asyncio
    async def test_dropdown_orders_defaults_before_custom(self, fake_db):
        fake_db.queue(
            'fetch_all',
            [], [],
            [habit_row('Zen', 'custom', user_id='42', is_default=False)],
            [habit_row('Alpha', 'custom', user_id='42', is_default=False, country_code='GLOBAL')],
        )
        habits = await spending_habit_service.get_spending_habits_for_dropdown('42', 'US')
        assert [h.name for h in habits] == ['Conservative', 'Moderate', 'Liberal', 'Alpha', 'Zen']

    @pytest.mark.asyncio
    async def test_ensure_default_habits_inserts_missing(self, fake_db):
        fake_db.queue('fetch_val', 1, 0, 0)
        added = await spending_habit_service.ensure_default_habits('US')

        assert added == 2
        inserts = fake_db.queries('execute')
        assert len(inserts) == 2
        assert all("INSERT INTO spending_habits" in q for q in inserts)

    @pytest.mark.asyncio
    async def test_create_validates_multiplier(self, fake_db):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            await spending_habit_service.create_spending_habit('42', 'US', 'Splurge', 6)
        with pytest.raises(ValidationError, match="Unknown habit type"):
            await spending_habit_service.create_spending_habit('42', 'US', 'X', 1, habit_type='wild')
        assert fake_db.calls == []

    @pytest.mark.asyncio
    async def test_create_rounds_multiplier(self, fake_db):
        fake_db.queue('fetch_one', habit_row('Frugal', 'custom', user_id='42', expense_multiplier='0.90'))
        habit = await spending_habit_service.create_spending_habit('42', 'US', 'Frugal', '0.899')

        assert habit.name == 'Frugal'
        assert fake_db.calls[0][2][5] == Decimal('0.90')

    @pytest.mark.asyncio
    async def test_update_builds_set_clause(self, fake_db):
        fake_db.queue('fetch_one', habit_row('Renamed', 'custom'))
        await spending_habit_service.update_spending_habit(5, name='Renamed', expense_multiplier=2)

        _, query, args = fake_db.calls[0]
        assert "name = $1" in query and "expense_multiplier = $2" in query and "WHERE id = $3" in query
        assert args == ('Renamed', Decimal('2.00'), 5)

        with pytest.raises(ValidationError, match="Nothing to update"):
            await spending_habit_service.update_spending_habit(5)

    @pytest.mark.asyncio
    async def test_delete(self, fake_db):
        fake_db.queue('execute', 'DELETE 1', 'DELETE 0')
        assert await spending_habit_service.delete_spending_habit(1) is True
        assert await spending_habit_service.delete_spending_habit(2) is False
