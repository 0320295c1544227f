"""
Analytics handler
"""
from datetime import date, timedelta

from telegram import Update
from telegram.ext import ContextTypes

from handlers.base_handler import BaseHandler
from services.analytics_service import analytics_service
from utils import ValidationError
from utils.currency import get_currency_symbol

DEFAULT_DAYS = 30
MAX_DAYS = 365


class AnalyticsHandler(BaseHandler):
    """/analytics [days]: text summary plus the category chart"""

    @staticmethod
    def parse_days(args) -> int:
        if not args:
            return DEFAULT_DAYS
        try:
            days = int(args[0])
        except ValueError:
            raise ValidationError("Days must be a number")
        if not 1 <= days <= MAX_DAYS:
            raise ValidationError(f"Days must be between 1 and {MAX_DAYS}")
        return days

    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.check_user_access(update, context):
            return

        try:
            days = self.parse_days(context.args)
            user_id = self.user_key(update)
            end = date.today()
            start = end - timedelta(days=days)

            analytics = await analytics_service.get_spending_analytics(user_id, start, end)
            currency = await self.get_user_currency(user_id)

            if analytics['total_spent'] <= 0:
                await update.message.reply_text(
                    f"📈 No expenses in the last {days} days.",
                    reply_markup=self.get_main_menu_keyboard()
                )
                return

            health = await analytics_service.get_financial_health_score(user_id)
            lines = [
                f"📈 Last {days} days",
                "",
                f"💰 Total: {self.format_amount(analytics['total_spent'], currency)}",
                f"📆 Daily average: {self.format_amount(analytics['average_daily_spending'], currency)}",
                "",
            ]
            for category, amount in sorted(analytics['category_breakdown'].items(),
                                           key=lambda kv: kv[1], reverse=True):
                share = analytics['category_percentages'][category]
                lines.append(f"• {category}: {self.format_amount(amount, currency)} ({share:.1f}%)")
            lines += ["", f"❤️ Financial health: {health['overall_score']}/100"]
            lines += [f"💡 {tip}" for tip in health['recommendations']]

            chart = analytics_service.render_spending_chart(analytics, get_currency_symbol(currency))
            await update.message.reply_photo(
                photo=chart,
                caption="\n".join(lines)[:1024],
                reply_markup=self.get_main_menu_keyboard()
            )
        except Exception as e:
            await self.handle_error(update, context, e)
