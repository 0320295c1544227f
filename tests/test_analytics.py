"""
Analytics and draft storage tests
"""
import json
import time
from datetime import date, timedelta
from decimal import Decimal

import pytest

from models import Expense
from services.analytics_service import analytics_service, expenses_frame, months_between
from services.calculation_storage_service import CalculationStorageService


def make_expense(day, amount, category='Food & Drinks', description='x', id=None):
    return Expense(id=id, user_id='42', amount=Decimal(str(amount)), expense_date=day,
                   category_name=category, description=description)


def sample_frame():
    return expenses_frame([
        make_expense(date(2024, 6, 3), 50, id=1),
        make_expense(date(2024, 6, 3), 30, 'Transportation', id=2),
        make_expense(date(2024, 6, 10), 20, id=3),
        make_expense(date(2024, 5, 20), 100, id=4, description='Dinner party'),
        make_expense(date(2024, 7, 1), 999, id=5),
    ])


def test_months_between():
    assert months_between(date(2024, 5, 1), date(2024, 6, 30)) == 1
    assert months_between(date(2024, 1, 1), date(2024, 1, 31)) == 1
    assert months_between(date(2023, 11, 1), date(2024, 2, 1)) == 3


def test_expenses_frame_defaults_category():
    frame = expenses_frame([make_expense(date(2024, 1, 1), 5, category=None)])
    assert frame.loc[0, 'category'] == 'Uncategorized'
    assert frame.loc[0, 'amount'] == 5.0


def test_spending_analytics():
    """Only expenses inside the range are counted"""
    analytics = analytics_service.build_spending_analytics(sample_frame(), date(2024, 5, 1), date(2024, 6, 30))

    assert analytics['total_spent'] == pytest.approx(200)
    assert analytics['average_daily_spending'] == pytest.approx(200 / 60)
    assert analytics['average_monthly_spending'] == pytest.approx(200)
    assert analytics['category_breakdown'] == {'Food & Drinks': 170.0, 'Transportation': 30.0}
    assert analytics['category_percentages']['Transportation'] == pytest.approx(15)
    assert analytics['top_expenses'][0]['description'] == 'Dinner party'
    assert analytics['top_expenses'][0]['date'] == date(2024, 5, 20)
    assert analytics['spending_trend'] == [
        {'date': '2024-05-20', 'amount': 100.0},
        {'date': '2024-06-03', 'amount': 80.0},
        {'date': '2024-06-10', 'amount': 20.0},
    ]
    assert list(analytics['spending_by_day_of_week']) == [
        'Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday'
    ]
    assert analytics['spending_by_day_of_week']['Monday'] == pytest.approx(200)
    assert analytics['spending_by_day_of_week']['Friday'] == 0.0
    assert analytics['spending_by_month'] == {'May 2024': 100.0, 'June 2024': 100.0}


def test_spending_analytics_empty():
    analytics = analytics_service.build_spending_analytics(expenses_frame([]), date(2024, 1, 1), date(2024, 1, 31))
    assert analytics['total_spent'] == 0.0
    assert analytics['category_breakdown'] == {}
    assert analytics['top_expenses'] == []
    assert analytics['spending_by_month'] == {}
    assert set(analytics['spending_by_day_of_week'].values()) == {0.0}


def test_spending_insights():
    day = date(2024, 6, 1)
    expenses = [make_expense(day, 10) for _ in range(7)] + [make_expense(day, 100, description='TV')]
    insights = analytics_service.build_spending_insights(expenses_frame(expenses))

    assert insights['unusual_spending'] == [
        {'date': day, 'amount': 100.0, 'description': 'TV', 'reason': 'high_amount'}
    ]
    assert [p['pattern'] for p in insights['spending_patterns']] == ['Frequent Food & Drinks spending']
    assert insights['spending_patterns'][0]['frequency'] == 8
    assert insights['recommendations'] == []


def test_many_patterns_recommend_budgets():
    day = date(2024, 6, 1)
    categories = ['A', 'B', 'C', 'D', 'E', 'F']
    expenses = [make_expense(day, 10, category=c) for c in categories for _ in range(6)]
    insights = analytics_service.build_spending_insights(expenses_frame(expenses))

    assert len(insights['spending_patterns']) == 6
    recommendation, = insights['recommendations']
    assert recommendation['type'] == 'set_budget'
    assert recommendation['potential_savings'] == pytest.approx(36.0)


def test_insights_empty():
    insights = analytics_service.build_spending_insights(expenses_frame([]))
    assert insights == {'unusual_spending': [], 'spending_patterns': [], 'recommendations': []}


@pytest.mark.asyncio
async def test_budget_analytics(fake_db):
    fake_db.queue('fetch_all', [
        {'id': 1, 'user_id': '42', 'amount': Decimal('100'),
         'start_date': date(2024, 6, 1), 'end_date': date(2024, 6, 30)},
        {'id': 2, 'user_id': '42', 'category_id': 3, 'category_name': 'Travel', 'amount': Decimal('50'),
         'start_date': date(2024, 5, 1), 'end_date': date(2024, 5, 31)},
    ])
    fake_db.queue('fetch_val', Decimal('85'), Decimal('60'))

    analytics = await analytics_service.get_budget_analytics('42', date(2024, 6, 15))

    assert analytics['total_budgets'] == 2
    assert analytics['active_budgets'] == 1
    assert analytics['completed_budgets'] == 1
    assert analytics['average_budget_utilization'] == pytest.approx(102.5)
    assert [p['status'] for p in analytics['budget_performance']] == ['at_risk', 'over_budget']
    assert analytics['budget_performance'][0]['budget_name'] == 'Overall'


@pytest.mark.asyncio
async def test_financial_health_score(fake_db):
    today = date(2024, 6, 15)
    fake_db.queue('fetch_all', [
        {'id': 1, 'user_id': '42', 'amount': Decimal('900'), 'expense_date': today - timedelta(days=1)}
    ], [])

    health = await analytics_service.get_financial_health_score('42', today)

    assert health['spending_score'] == pytest.approx(99.9)
    assert health['budget_score'] == 100
    assert health['savings_score'] == 70
    assert health['overall_score'] == 90
    assert health['recommendations'] == ['Create budgets to better track and control your spending']


def test_render_spending_chart():
    analytics = analytics_service.build_spending_analytics(sample_frame(), date(2024, 5, 1), date(2024, 6, 30))
    chart = analytics_service.render_spending_chart(analytics, "€")
    assert chart.read(4) == b'\x89PNG'


def test_render_empty_chart():
    chart = analytics_service.render_spending_chart({'category_breakdown': {}, 'total_spent': 0.0})
    assert chart.getvalue().startswith(b'\x89PNG')


class TestCalculationDraft:
    def test_round_trip(self, tmp_path):
        storage = CalculationStorageService(str(tmp_path / "drafts" / "draft.json"), ttl_hours=24)
        assert storage.get_draft() is None

        storage.save_draft({'country': 'IN', 'gross_salary': 1200000})
        assert storage.has_draft()
        assert storage.get_draft() == {'country': 'IN', 'gross_salary': 1200000}

        storage.clear_draft()
        assert not storage.has_draft()

    def test_drafts_are_kept_per_user(self, tmp_path):
        storage = CalculationStorageService(str(tmp_path / "draft.json"), ttl_hours=2)
        alice, bob = storage.for_user('1'), storage.for_user('2')

        alice.save_draft({'country': 'UK'})
        assert alice.path.endswith("draft_1.json")
        assert alice.ttl_seconds == 7200
        assert alice.get_draft() == {'country': 'UK'}
        assert bob.get_draft() is None

    def test_expired_draft_is_removed(self, tmp_path):
        path = tmp_path / "draft.json"
        path.write_text(json.dumps({'data': {'country': 'US'}, 'timestamp': time.time() - 25 * 3600}))
        storage = CalculationStorageService(str(path), ttl_hours=24)

        assert storage.get_draft() is None
        assert not path.exists()

    def test_unreadable_draft_is_removed(self, tmp_path):
        path = tmp_path / "draft.json"
        path.write_text("{not json")
        storage = CalculationStorageService(str(path))

        assert storage.get_draft() is None
        assert not path.exists()
