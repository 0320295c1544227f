"""
Service tests against the in-memory database
"""
import io
import json
import re
from datetime import date
from decimal import Decimal

import pytest

from models import SpendingAlert, TriggeredAlert
from services.alert_service import alert_service, period_start
from services.budget_service import budget_service
from services.expense_service import expense_service
from services.notification_service import notification_service, generate_notification_id
from services.tax_calculation_service import tax_calculation_service, TAX_CALCULATION
from services.user_service import user_service
from utils import DatabaseError, ValidationError


def expense_row(**extra):
    row = {'id': 10, 'user_id': '42', 'category_id': 1, 'amount': Decimal('12.50'),
           'currency': 'USD', 'expense_date': date.today(), 'description': 'Coffee'}
    row.update(extra)
    return row


def budget_row(**extra):
    row = {'id': 1, 'user_id': '42', 'category_id': None, 'amount': Decimal('100'),
           'period': 'monthly', 'start_date': date(2024, 6, 1), 'end_date': date(2024, 6, 30)}
    row.update(extra)
    return row


def alert_row(**extra):
    row = {'id': 1, 'user_id': '42', 'category_id': None, 'threshold': Decimal('100'),
           'period': 'monthly', 'active': True}
    row.update(extra)
    return row


def notification_row(**extra):
    row = {'id': 'notification_1_abc', 'user_id': '42', 'title': 'Spending alert',
           'message': 'm', 'type': 'warning', 'priority': 'high', 'metadata': '{}'}
    row.update(extra)
    return row


def saved_row(**extra):
    row = {'id': 3, 'user_id': '42', 'data_type': TAX_CALCULATION, 'data_name': 'March',
           'data_content': '{}', 'is_favorite': False}
    row.update(extra)
    return row


# Expenses

@pytest.mark.asyncio
async def test_create_expense(fake_db):
    """Category lookup, duplicate check, then insert"""
    fake_db.queue('fetch_one', {'id': 1, 'name': 'Food & Drinks', 'is_default': True}, expense_row())

    expense = await expense_service.create_expense(
        '42', '12,50', 'Coffee', category_id=1, expense_date=date.today(), currency='usd'
    )

    assert expense.amount == Decimal('12.50')
    assert expense.category_name == 'Food & Drinks'
    assert [m for m, _, _ in fake_db.calls] == ['fetch_one', 'fetch_all', 'fetch_one']
    _, query, args = fake_db.calls[-1]
    assert "INSERT INTO expenses" in query
    assert args[:4] == ('42', 1, Decimal('12.50'), 'USD')


@pytest.mark.asyncio
async def test_create_expense_with_custom_category(fake_db):
    """Categories outside the built-in list are accepted"""
    fake_db.queue('fetch_one', {'id': 7, 'name': 'Board games'}, expense_row(category_id=7))
    expense = await expense_service.create_expense('42', 30, 'Catan', category_id=7)
    assert expense.category_name == 'Board games'


@pytest.mark.asyncio
async def test_create_expense_rejects_unknown_category(fake_db):
    with pytest.raises(ValidationError, match="Category 9 does not exist"):
        await expense_service.create_expense('42', 5, 'Tea', category_id=9)


@pytest.mark.asyncio
async def test_create_expense_field_errors_are_not_wrapped(fake_db):
    with pytest.raises(ValidationError, match="Currency XXX is not supported"):
        await expense_service.create_expense('42', 5, 'Tea', currency='xxx')
    assert fake_db.queries('fetch_one') == []


@pytest.mark.asyncio
async def test_create_expense_invalid_amount(fake_db):
    with pytest.raises(ValidationError, match="greater than zero"):
        await expense_service.create_expense('42', '-3', 'Tea')
    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_get_expenses_filters(fake_db):
    """Each filter adds a numbered placeholder"""
    fake_db.queue('fetch_all', [expense_row(category_name='Food & Drinks')])
    expenses = await expense_service.get_expenses('42', {
        'start_date': '2024-06-01', 'category_id': '1', 'min_amount': 5
    })

    assert expenses[0].category_name == 'Food & Drinks'
    _, query, args = fake_db.calls[0]
    assert "e.expense_date >= $2" in query
    assert "e.category_id = $3" in query
    assert "e.amount >= $4" in query
    assert args == ('42', date(2024, 6, 1), 1, Decimal('5'))


@pytest.mark.asyncio
async def test_update_and_delete_expense(fake_db):
    fake_db.queue('fetch_one', expense_row(), expense_row(description='Latte'))
    updated = await expense_service.update_expense(10, description='Latte', user_id='hijack')

    _, query, args = fake_db.calls[-1]
    assert "description = $1" in query and "WHERE id = $2" in query
    assert args == ('Latte', 10)
    assert updated.description == 'Latte'

    with pytest.raises(ValidationError, match="No fields to update"):
        await expense_service.update_expense(10, user_id='x')

    fake_db.queue('execute', 'DELETE 0')
    assert await expense_service.delete_expense(99) is False


@pytest.mark.asyncio
async def test_update_validates_the_merged_expense(fake_db):
    """Changes are checked together with the stored record before writing"""
    fake_db.queue('fetch_one', expense_row())
    with pytest.raises(ValidationError, match="Recurring interval is required"):
        await expense_service.update_expense(10, is_recurring=True)

    fake_db.queue('fetch_one', expense_row())
    with pytest.raises(ValidationError, match="Amount cannot exceed"):
        await expense_service.update_expense(10, amount='2000000')

    fake_db.queue('fetch_one', expense_row(), None)
    with pytest.raises(ValidationError, match="Category 9 does not exist"):
        await expense_service.update_expense(10, category_id=9)

    assert not [q for q in fake_db.queries('fetch_one') if q.lstrip().startswith("UPDATE")]


@pytest.mark.asyncio
async def test_update_missing_expense(fake_db):
    assert await expense_service.update_expense(404, description='Tea') is None
    assert len(fake_db.calls) == 1


@pytest.mark.asyncio
async def test_expense_summary_totals(fake_db):
    fake_db.queue('fetch_all', [
        {'category': 'Food & Drinks', 'count': 2, 'total_amount': Decimal('30'), 'avg_amount': Decimal('15')},
        {'category': 'Uncategorized', 'count': 1, 'total_amount': Decimal('10'), 'avg_amount': Decimal('10')},
    ])
    summary = await expense_service.get_expense_summary('42', start_date=date(2024, 6, 1))

    assert summary['total_amount'] == Decimal('40')
    assert summary['total_count'] == 3
    assert [c['category'] for c in summary['categories']] == ['Food & Drinks', 'Uncategorized']
    assert "e.expense_date >= $2" in fake_db.calls[0][1]


@pytest.mark.asyncio
async def test_expense_database_errors_are_wrapped(fake_db):
    fake_db.queue('fetch_all', RuntimeError("pool closed"))
    with pytest.raises(DatabaseError, match="Failed to get expenses: pool closed"):
        await expense_service.get_expenses('42')


@pytest.mark.asyncio
async def test_export_expenses_excel(fake_db):
    fake_db.queue('fetch_all', [expense_row(category_name='Food & Drinks')])
    buf = await expense_service.export_expenses_excel('42')
    assert isinstance(buf, io.BytesIO)
    assert buf.read(2) == b'PK'


@pytest.mark.asyncio
async def test_export_expenses_csv(fake_db, tmp_path):
    fake_db.queue('fetch_all', [expense_row(), expense_row(id=11, amount=Decimal('3'))])
    path = tmp_path / "expenses.csv"

    count = await expense_service.export_expenses_csv('42', str(path))

    assert count == 2
    header = path.read_text().splitlines()[0]
    assert header == "date,amount,currency,category,description,location,source"


# Budgets

@pytest.mark.asyncio
async def test_create_budget_validates_dates(fake_db):
    with pytest.raises(ValidationError, match="End date"):
        await budget_service.create_budget('42', None, 100, '2024-06-30', '2024-06-01')
    with pytest.raises(ValidationError, match="Invalid budget period"):
        await budget_service.create_budget('42', None, 100, '2024-06-01', '2024-06-30', 'daily')
    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_budget_progress_and_alerts(fake_db):
    """Overall budget sums every category"""
    fake_db.queue('fetch_all', [budget_row()], [budget_row(), budget_row(id=2, category_id=3)])
    fake_db.queue('fetch_val', Decimal('85'), Decimal('85'), Decimal('10'))

    progress = await budget_service.get_budget_progress('42')
    assert progress[0].percentage_used == pytest.approx(85)
    assert progress[0].remaining == Decimal('15')
    assert "category_id" not in fake_db.queries('fetch_val')[0]

    alerts = await budget_service.get_budget_alerts('42')
    assert [p.budget.id for p in alerts] == [1]
    assert "category_id = $4" in fake_db.queries('fetch_val')[2]


@pytest.mark.asyncio
async def test_copy_budget_from_previous_month(fake_db):
    """January copies December of the year before"""
    fake_db.queue('fetch_all', [{'category_id': 3, 'amount': Decimal('200')}])
    fake_db.queue('fetch_one', budget_row(id=5, category_id=3, amount=Decimal('200'),
                                          start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)))

    created = await budget_service.copy_budget_from_previous_month('42', 2024, 1)

    assert fake_db.calls[0][2] == ('42', date(2023, 12, 1), date(2023, 12, 31))
    assert fake_db.calls[1][2] == ('42', 3, Decimal('200'), 'monthly', date(2024, 1, 1), date(2024, 1, 31))
    assert created[0].id == 5


@pytest.mark.asyncio
async def test_copy_budget_with_nothing_to_copy(fake_db):
    assert await budget_service.copy_budget_from_previous_month('42', 2024, 5) == []


# Alerts

def test_period_start():
    today = date(2024, 3, 31)
    assert period_start('daily', today) == today
    assert period_start('weekly', today) == date(2024, 3, 24)
    assert period_start('monthly', today) == date(2024, 2, 29)
    assert period_start('monthly', date(2024, 1, 15)) == date(2023, 12, 15)


@pytest.mark.asyncio
async def test_check_alerts_and_near_threshold(fake_db):
    rows = [alert_row(), alert_row(id=2, category_id=2, threshold=Decimal('200'))]
    fake_db.queue('fetch_all', rows, rows)
    fake_db.queue('fetch_val', Decimal('120'), Decimal('185'), Decimal('120'), Decimal('185'))
    today = date(2024, 6, 15)

    triggered = await alert_service.check_alerts('42', today)
    near = await alert_service.get_near_threshold_alerts('42', today)

    assert [t.alert.id for t in triggered] == [1]
    assert [t.alert.id for t in near] == [2]
    assert near[0].percentage == pytest.approx(92.5)
    _, overall_query, overall_args = fake_db.calls[1]
    assert "expense_date <= $3" in overall_query
    assert overall_args == ('42', date(2024, 5, 15), today)
    _, query, args = fake_db.calls[2]
    assert "category_id = $4" in query
    assert args == ('42', date(2024, 5, 15), today, 2)


@pytest.mark.asyncio
async def test_create_alert_validation(fake_db):
    with pytest.raises(ValidationError, match="Invalid alert period"):
        await alert_service.create_general_alert('42', 100, 'yearly')

    fake_db.queue('fetch_one', alert_row(threshold=Decimal('250')))
    alert = await alert_service.create_general_alert('42', '250')
    assert alert.threshold == Decimal('250')
    assert fake_db.calls[0][2] == ('42', None, Decimal('250'), 'monthly', True)


@pytest.mark.asyncio
async def test_alert_stats(fake_db):
    rows = [alert_row(), alert_row(id=2, active=False, period='weekly')]
    fake_db.queue('fetch_all', rows, [rows[0]])
    fake_db.queue('fetch_val', Decimal('150'))

    stats = await alert_service.get_alert_stats('42', date(2024, 6, 15))
    assert stats == {
        'total_alerts': 2,
        'active_alerts': 1,
        'inactive_alerts': 1,
        'triggered_alerts': 1,
        'by_period': {'monthly': 1, 'weekly': 1}
    }


@pytest.mark.asyncio
async def test_deactivate_all_alerts(fake_db):
    fake_db.queue('execute', 'UPDATE 3')
    assert await alert_service.deactivate_all_alerts('42') == 3


# Notifications

def test_notification_id_format():
    assert re.fullmatch(r"notification_\d+_[0-9a-z]{9}", generate_notification_id())


@pytest.mark.asyncio
async def test_create_notification(fake_db):
    fake_db.queue('fetch_one', notification_row(metadata='{"alert_id": 1}'))
    notification = await notification_service.create_notification(
        '42', 'Spending alert', 'm', type='warning', priority='high', metadata={'alert_id': 1}
    )

    assert notification.metadata == {'alert_id': 1}
    args = fake_db.calls[0][2]
    assert args[0].startswith('notification_')
    assert json.loads(args[6]) == {'alert_id': 1}

    with pytest.raises(ValidationError, match="Unknown notification type"):
        await notification_service.create_notification('42', 't', 'm', type='spam')
    with pytest.raises(ValidationError, match="Unknown notification priority"):
        await notification_service.create_notification('42', 't', 'm', priority='urgent')


@pytest.mark.asyncio
async def test_read_state(fake_db):
    fake_db.queue('execute', 'UPDATE 1', 'UPDATE 0', 'UPDATE 2')

    assert await notification_service.mark_as_read('n1') is True
    assert await notification_service.dismiss_notification('missing') is False
    assert await notification_service.mark_multiple_as_read(['n1', 'n2']) == 2
    assert await notification_service.mark_multiple_as_read([]) == 0

    queries = fake_db.queries('execute')
    assert len(queries) == 3
    assert "is_dismissed = TRUE" in queries[1]
    assert fake_db.calls[2][2] == (['n1', 'n2'],)


@pytest.mark.asyncio
async def test_notification_stats(fake_db):
    fake_db.queue('fetch_all', [
        {'type': 'warning', 'priority': 'high', 'is_read': False, 'is_dismissed': False},
        {'type': 'info', 'priority': 'low', 'is_read': True, 'is_dismissed': False},
        {'type': 'warning', 'priority': 'medium', 'is_read': False, 'is_dismissed': True},
    ])
    stats = await notification_service.get_notification_stats('42')

    assert stats['total'] == 3
    assert stats['unread'] == 1
    assert stats['dismissed'] == 1
    assert stats['by_type'] == {'warning': 2, 'info': 1}


@pytest.mark.asyncio
async def test_notify_triggered_alerts(fake_db):
    """Over-limit alerts are high priority"""
    fake_db.queue('fetch_one', notification_row(), notification_row(priority='medium'))
    alert = SpendingAlert(id=1, user_id='42', threshold=Decimal('100'), category_name='Food & Drinks')
    triggered = [
        TriggeredAlert(alert=alert, spent=Decimal('120')),
        TriggeredAlert(alert=SpendingAlert(id=2, user_id='42', threshold=Decimal('100')), spent=Decimal('95')),
    ]

    created = await notification_service.notify_triggered_alerts('42', triggered)

    assert len(created) == 2
    first, second = (args for _, _, args in fake_db.calls)
    assert first[3] == ("Your monthly Food & Drinks spending reached 120.00 "
                        "of the 100.00 limit (120%)")
    assert first[5] == 'high'
    assert "total spending" in second[3]
    assert second[5] == 'medium'


# Profiles

@pytest.mark.asyncio
async def test_profile_upsert(fake_db):
    fake_db.queue('fetch_one', {'user_id': '42', 'currency': 'EUR', 'first_name': 'Ann'})
    profile = await user_service.create_or_update_profile('42', currency='eur', first_name='Ann', role='admin')

    _, query, args = fake_db.calls[0]
    assert "INSERT INTO profiles (user_id, currency, first_name)" in query
    assert "ON CONFLICT (user_id) DO UPDATE SET currency = EXCLUDED.currency" in query
    assert args == ('42', 'EUR', 'Ann')
    assert profile.currency == 'EUR'


@pytest.mark.asyncio
async def test_profile_without_fields_only_touches_timestamp(fake_db):
    fake_db.queue('fetch_one', {'user_id': '42'})
    profile = await user_service.create_or_update_profile('42')

    assert "DO UPDATE SET updated_at = NOW()" in fake_db.calls[0][1]
    assert profile.currency == 'USD'


@pytest.mark.asyncio
async def test_profile_validation(fake_db):
    with pytest.raises(ValidationError, match="Unsupported currency: XYZ"):
        await user_service.create_or_update_profile('42', currency='xyz')
    with pytest.raises(ValidationError, match="No fields to update"):
        await user_service.update_preferences('42')
    assert fake_db.calls == []


# Tax calculations

def test_calculate_tax():
    result = tax_calculation_service.calculate('US', '100,000', regime='single')
    assert result.total_tax == pytest.approx(21491)


def test_calculate_tax_rejects_invalid_input():
    with pytest.raises(ValidationError, match="Invalid filing status"):
        tax_calculation_service.calculate('US', 50000, regime='widowed')
    with pytest.raises(ValidationError, match="cannot be negative"):
        tax_calculation_service.calculate('IN', -1)
    with pytest.raises(ValidationError, match="Unsupported country"):
        tax_calculation_service.calculate('Atlantis', 1000)


@pytest.mark.asyncio
async def test_save_calculation(fake_db):
    result = tax_calculation_service.calculate('UK', 50000)
    fake_db.queue('fetch_one', saved_row(data_content=json.dumps({'result': result.to_dict()})))

    saved = await tax_calculation_service.save_calculation('42', ' March ', result, {'note': 'bonus'})

    assert saved.data_name == 'March'
    args = fake_db.calls[0][2]
    assert args[:3] == ('42', TAX_CALCULATION, 'March')
    content = json.loads(args[3])
    assert content['metadata'] == {'note': 'bonus'}
    assert content['result']['total_tax'] == pytest.approx(result.total_tax)


@pytest.mark.asyncio
async def test_save_calculation_failure_raises_database_error(fake_db):
    result = tax_calculation_service.calculate('US', 1000)
    fake_db.queue('fetch_one', RuntimeError("auth token rejected"))
    with pytest.raises(DatabaseError, match="Failed to save calculation"):
        await tax_calculation_service.save_calculation('42', 'x', result)


@pytest.mark.asyncio
async def test_export_and_import_user_data(fake_db):
    fake_db.queue('fetch_all', [saved_row(), saved_row(id=4, data_name='April', is_favorite=True)])
    exported = await tax_calculation_service.export_user_data('42')

    assert 'exportDate' in exported
    assert [item['data_name'] for item in exported['userData']] == ['March', 'April']

    fake_db.queue('fetch_one', saved_row(), saved_row())
    assert await tax_calculation_service.import_user_data('43', exported) == 2
    assert [args[0] for m, _, args in fake_db.calls if m == 'fetch_one'] == ['43', '43']

    with pytest.raises(ValidationError, match="Invalid import format"):
        await tax_calculation_service.import_user_data('43', {'userData': 'nope'})
    with pytest.raises(ValidationError, match="Invalid import format"):
        await tax_calculation_service.import_user_data('43', {'userData': [{'data_type': 'x'}]})


@pytest.mark.asyncio
async def test_delete_saved(fake_db):
    fake_db.queue('execute', 'DELETE 1')
    assert await tax_calculation_service.delete_saved(3) is True
