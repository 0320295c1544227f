"""
Spending analytics, budget performance, health score and insights
"""
import io
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from models import Expense
from services.budget_service import budget_service
from services.expense_service import expense_service
from utils import logger

DAYS_OF_WEEK = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
INSIGHT_WINDOW_DAYS = 90
DEFAULT_SAVINGS_SCORE = 70
CHART_COLORS = ['#6B8E23', '#4682B4', '#CD853F', '#20B2AA', '#8A2BE2',
                '#32CD32', '#FF8C00', '#DC143C', '#1E90FF', '#9370DB']


def expenses_frame(expenses: List[Expense]) -> pd.DataFrame:
    """One row per expense with a datetime 'date' column and float 'amount'"""
    frame = pd.DataFrame(
        [
            {
                'id': e.id,
                'date': e.expense_date,
                'amount': float(e.amount),
                'category': e.category_name or 'Uncategorized',
                'description': e.description,
            }
            for e in expenses
        ],
        columns=['id', 'date', 'amount', 'category', 'description']
    )
    frame['date'] = pd.to_datetime(frame['date'])
    return frame


def months_between(start: date, end: date) -> int:
    return max(1, (end.year - start.year) * 12 + end.month - start.month)


class AnalyticsService:
    """Aggregates over expenses and budgets"""

    def build_spending_analytics(self, frame: pd.DataFrame, start_date: date, end_date: date) -> Dict[str, Any]:
        frame = frame[(frame['date'] >= pd.Timestamp(start_date)) & (frame['date'] <= pd.Timestamp(end_date))]

        total_spent = float(frame['amount'].sum()) if not frame.empty else 0.0
        days = max(1, (end_date - start_date).days)
        months = months_between(start_date, end_date)

        by_category = frame.groupby('category')['amount'].sum() if not frame.empty else pd.Series(dtype=float)
        category_breakdown = {k: float(v) for k, v in by_category.items()}
        category_percentages = {
            k: (v / total_spent * 100 if total_spent > 0 else 0.0)
            for k, v in category_breakdown.items()
        }

        top = frame.sort_values('amount', ascending=False, kind='stable').head(10)
        top_expenses = [
            {
                'id': row.id,
                'amount': float(row.amount),
                'description': row.description,
                'category': row.category,
                'date': row.date.date(),
            }
            for row in top.itertuples(index=False)
        ]

        daily = frame.groupby(frame['date'].dt.strftime('%Y-%m-%d'))['amount'].sum().sort_index()
        spending_trend = [{'date': d, 'amount': float(a)} for d, a in daily.items()]

        spending_by_day = {day: 0.0 for day in DAYS_OF_WEEK}
        for day, amount in frame.groupby(frame['date'].dt.day_name())['amount'].sum().items():
            spending_by_day[day] = float(amount)

        spending_by_month: Dict[str, float] = {}
        if not frame.empty:
            monthly = frame.groupby(frame['date'].dt.to_period('M'))['amount'].sum().sort_index()
            spending_by_month = {p.strftime('%B %Y'): float(a) for p, a in monthly.items()}

        return {
            'total_spent': total_spent,
            'average_daily_spending': total_spent / days,
            'average_monthly_spending': total_spent / months,
            'category_breakdown': category_breakdown,
            'category_percentages': category_percentages,
            'top_expenses': top_expenses,
            'spending_trend': spending_trend,
            'spending_by_day_of_week': spending_by_day,
            'spending_by_month': spending_by_month,
        }

    async def get_spending_analytics(self, user_id: str, start_date: date, end_date: date) -> Dict[str, Any]:
        expenses = await expense_service.get_expenses(user_id, {'start_date': start_date, 'end_date': end_date})
        return self.build_spending_analytics(expenses_frame(expenses), start_date, end_date)

    async def get_budget_analytics(self, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        progress = await budget_service.get_budget_progress(user_id)

        performance = []
        for p in progress:
            utilization = p.percentage_used
            if p.is_over_budget:
                status = 'over_budget'
            elif utilization >= 80:
                status = 'at_risk'
            else:
                status = 'under_budget'
            performance.append({
                'budget_id': p.budget.id,
                'budget_name': p.budget.category_name or 'Overall',
                'planned_amount': float(p.budget.amount),
                'actual_spent': float(p.spent),
                'utilization_percentage': utilization,
                'status': status,
            })

        average = (
            sum(item['utilization_percentage'] for item in performance) / len(performance)
            if performance else 0.0
        )
        return {
            'total_budgets': len(progress),
            'active_budgets': sum(1 for p in progress if p.budget.is_active(today)),
            'completed_budgets': sum(1 for p in progress if p.budget.end_date and p.budget.end_date < today),
            'average_budget_utilization': average,
            'budget_performance': performance,
        }

    async def get_financial_health_score(self, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        spending = await self.get_spending_analytics(user_id, today - timedelta(days=INSIGHT_WINDOW_DAYS), today)
        budgets = await self.get_budget_analytics(user_id, today)

        spending_score = max(0.0, 100 - spending['average_daily_spending'] / 100)
        budget_score = max(0.0, 100 - budgets['average_budget_utilization'])
        savings_score = DEFAULT_SAVINGS_SCORE
        overall = round((spending_score + budget_score + savings_score) / 3)

        recommendations = []
        if spending_score < 50:
            recommendations.append('Consider reducing daily spending to improve financial health')
        if budget_score < 50:
            recommendations.append('Review and adjust your budgets to better align with actual spending')
        if budgets['active_budgets'] == 0:
            recommendations.append('Create budgets to better track and control your spending')

        return {
            'overall_score': overall,
            'spending_score': spending_score,
            'budget_score': budget_score,
            'savings_score': savings_score,
            'recommendations': recommendations,
        }

    def build_spending_insights(self, frame: pd.DataFrame) -> Dict[str, Any]:
        unusual: List[Dict[str, Any]] = []
        patterns: List[Dict[str, Any]] = []
        recommendations: List[Dict[str, Any]] = []

        if frame.empty:
            return {'unusual_spending': unusual, 'spending_patterns': patterns, 'recommendations': recommendations}

        threshold = frame['amount'].mean() * 2
        for row in frame[frame['amount'] > threshold].itertuples(index=False):
            unusual.append({
                'date': row.date.date(),
                'amount': float(row.amount),
                'description': row.description,
                'reason': 'high_amount',
            })

        stats = frame.groupby('category')['amount'].agg(['count', 'sum'])
        for category, row in stats.iterrows():
            frequency = int(row['count'])
            if frequency > 5:
                patterns.append({
                    'pattern': f"Frequent {category} spending",
                    'description': f"You spend on {category} {frequency} times in the last {INSIGHT_WINDOW_DAYS} days",
                    'frequency': frequency,
                    'average_amount': float(row['sum']) / frequency,
                })

        if len(patterns) > 5:
            recommendations.append({
                'type': 'set_budget',
                'title': 'Set Category Budgets',
                'description': 'You have many spending patterns - setting budgets could help control costs',
                'potential_savings': float(frame['amount'].sum()) * 0.1,
            })

        return {'unusual_spending': unusual, 'spending_patterns': patterns, 'recommendations': recommendations}

    async def get_spending_insights(self, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        expenses = await expense_service.get_expenses(user_id, {
            'start_date': today - timedelta(days=INSIGHT_WINDOW_DAYS),
            'end_date': today
        })
        return self.build_spending_insights(expenses_frame(expenses))

    def render_spending_chart(self, analytics: Dict[str, Any], currency_symbol: str = "$") -> io.BytesIO:
        """Pie chart of the category breakdown as PNG"""
        breakdown = sorted(analytics['category_breakdown'].items(), key=lambda kv: kv[1], reverse=True)
        categories = [k for k, _ in breakdown]
        amounts = [v for _, v in breakdown]
        total = analytics['total_spent']

        fig, ax = plt.subplots(figsize=(12, 8))
        fig.patch.set_facecolor('#1a1a1a')
        try:
            if amounts:
                colors = [CHART_COLORS[i % len(CHART_COLORS)] for i in range(len(amounts))]
                wedges, _, autotexts = ax.pie(
                    amounts, labels=categories, autopct='%1.1f%%', startangle=90, colors=colors,
                    textprops={'fontsize': 12, 'color': 'white'}, wedgeprops={'width': 0.45}
                )
                for autotext in autotexts:
                    autotext.set_fontweight('bold')
                legend_labels = [f"{c} - {currency_symbol}{a:,.0f}" for c, a in breakdown]
                ax.legend(wedges, legend_labels, title="Categories", loc="center left",
                          bbox_to_anchor=(1.05, 0.5), fontsize=11)
            ax.text(0, 0, f"TOTAL\n{currency_symbol}{total:,.0f}", ha='center', va='center',
                    fontsize=18, fontweight='bold', color='white')
            ax.set_title('Spending by category', color='white', fontsize=18, fontweight='bold')
            ax.axis('equal')

            buf = io.BytesIO()
            fig.savefig(buf, format='png', bbox_inches='tight', dpi=150,
                        facecolor=fig.get_facecolor(), edgecolor='none')
            buf.seek(0)
            logger.debug(f"Rendered spending chart with {len(amounts)} categories")
            return buf
        finally:
            plt.close(fig)


analytics_service = AnalyticsService()
