"""
Telegram handler tests with mocked updates
"""
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from handlers import ExpenseHandler, TaxHandler, AnalyticsHandler, AlertHandler
from handlers import tax_handler
from services.calculation_storage_service import CalculationStorageService
from services.tax_calculation_service import tax_calculation_service
from utils import ValidationError


def make_update(text="", user_id=42):
    update = MagicMock()
    update.effective_user.id = user_id
    update.message.text = text
    update.message.reply_text = AsyncMock()
    update.message.reply_photo = AsyncMock()
    return update


def make_context(*args):
    context = MagicMock()
    context.args = list(args)
    return context


def replied(update) -> str:
    return update.message.reply_text.call_args.args[0]


@pytest.mark.parametrize("text,expected", [
    ("12.50 coffee", True),
    ("12,50 lunch with team", True),
    ("100", False),
    ("coffee 12", False),
    ("5   ", False),
    ("", False),
])
def test_is_expense_input(text, expected):
    assert ExpenseHandler.is_expense_input(text) is expected


def test_parse_tax_args():
    assert TaxHandler.parse_args(['IN', '1,200,000', 'OLD']) == {
        'country': 'IN', 'salary': '1200000', 'regime': 'old'
    }
    with pytest.raises(ValidationError, match="Usage"):
        TaxHandler.parse_args(['US'])


def test_parse_days():
    assert AnalyticsHandler.parse_days([]) == 30
    assert AnalyticsHandler.parse_days(['90']) == 90
    with pytest.raises(ValidationError, match="between 1 and 365"):
        AnalyticsHandler.parse_days(['400'])
    with pytest.raises(ValidationError, match="must be a number"):
        AnalyticsHandler.parse_days(['week'])


def test_format_tax_result_marks_current_bracket():
    result = tax_calculation_service.calculate('US', 100000, regime='single')
    text = TaxHandler().format_result('US', result)

    assert "Total tax: $21,491.00" in text
    assert "Take-home: $78,509.00" in text
    assert "social security: $6,200.00" in text
    current = [line for line in text.splitlines() if line.startswith("👉")]
    assert len(current) == 1
    assert "22%" in current[0]


@pytest.mark.asyncio
async def test_tax_command_reuses_users_draft(monkeypatch, tmp_path):
    """A bare /tax repeats the user's previous calculation"""
    monkeypatch.setattr(tax_handler, 'calculation_storage_service',
                        CalculationStorageService(str(tmp_path / "draft.json"), ttl_hours=1))
    handler = TaxHandler()

    first = make_update()
    await handler.handle(first, make_context('UK', '50000'))
    again = make_update()
    await handler.handle(again, make_context())
    stranger = make_update(user_id=7)
    await handler.handle(stranger, make_context())

    assert replied(first).startswith("🧾 United Kingdom")
    assert replied(again) == replied(first)
    assert replied(stranger).startswith("🧾 Tax calculator")


@pytest.mark.asyncio
async def test_tax_command_reports_validation_errors(monkeypatch, tmp_path):
    monkeypatch.setattr(tax_handler, 'calculation_storage_service',
                        CalculationStorageService(str(tmp_path / "draft.json")))
    update = make_update()
    await TaxHandler().handle(update, make_context('Narnia', '1000'))
    assert replied(update) == "❌ Unsupported country: Narnia"


@pytest.mark.asyncio
async def test_add_expense_uses_profile_currency(fake_db):
    fake_db.queue('fetch_one',
                  {'user_id': '42', 'currency': 'EUR'},
                  {'id': 1, 'user_id': '42', 'amount': Decimal('12.50'), 'currency': 'EUR',
                   'expense_date': date.today(), 'description': 'coffee'})
    update = make_update("12,50 coffee")

    await ExpenseHandler().handle(update, make_context())

    text = replied(update)
    assert text.startswith("✅ Expense added!")
    assert "€12,50" in text
    insert_args = fake_db.calls[-1][2]
    assert insert_args[2:4] == (Decimal('12.50'), 'EUR')


@pytest.mark.asyncio
async def test_add_expense_wrong_format(fake_db):
    update = make_update("coffee")
    await ExpenseHandler().handle(update, make_context())
    assert replied(update).startswith("❌ Wrong format")
    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_database_errors_get_generic_reply(fake_db):
    fake_db.queue('fetch_one', RuntimeError("pool exhausted"))
    update = make_update("5 tea")
    await ExpenseHandler().handle(update, make_context())
    assert replied(update) == "❌ Database error. Please try again later."


@pytest.mark.asyncio
async def test_create_alert_command(fake_db):
    fake_db.queue('fetch_one',
                  {'id': 1, 'user_id': '42', 'threshold': Decimal('500'), 'period': 'weekly'},
                  None)
    update = make_update()

    await AlertHandler().handle(update, make_context('500', 'weekly'))

    assert replied(update) == "🔔 Alert created: weekly spending above $500.00"


@pytest.mark.asyncio
async def test_analytics_without_expenses(fake_db):
    update = make_update()
    await AnalyticsHandler().handle(update, make_context('7'))
    assert replied(update) == "📈 No expenses in the last 7 days."
    update.message.reply_photo.assert_not_called()


@pytest.mark.asyncio
async def test_month_totals_are_kept_per_currency(fake_db):
    today = date.today()
    fake_db.queue('fetch_all', [
        {'id': 1, 'user_id': '42', 'amount': Decimal('10'), 'currency': 'EUR',
         'expense_date': today, 'description': 'lunch'},
        {'id': 2, 'user_id': '42', 'amount': Decimal('5'), 'currency': 'USD',
         'expense_date': today, 'description': 'coffee'},
        {'id': 3, 'user_id': '42', 'amount': Decimal('2.50'), 'currency': 'EUR',
         'expense_date': today, 'description': 'bus'},
    ])
    fake_db.queue('fetch_one', {'user_id': '42', 'currency': 'USD'})
    update = make_update()

    await ExpenseHandler().list_expenses(update, make_context())

    totals = [line for line in replied(update).splitlines() if line.startswith("💰 Total")]
    assert totals == ["💰 Total: $5.00", "💰 Total: €12,50"]
