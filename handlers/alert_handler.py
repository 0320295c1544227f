"""
Spending alert handler
"""
from telegram import Update
from telegram.ext import ContextTypes

from handlers.base_handler import BaseHandler
from services.alert_service import alert_service
from services.notification_service import notification_service


class AlertHandler(BaseHandler):
    """/alerts: evaluate alerts and report the triggered ones"""

    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.check_user_access(update, context):
            return

        try:
            user_id = self.user_key(update)
            args = list(context.args or [])
            if len(args) >= 1:
                period = args[1] if len(args) > 1 else 'monthly'
                alert = await alert_service.create_general_alert(user_id, args[0], period)
                currency = await self.get_user_currency(user_id)
                await update.message.reply_text(
                    f"🔔 Alert created: {alert.period} spending above "
                    f"{self.format_amount(alert.threshold, currency)}",
                    reply_markup=self.get_main_menu_keyboard()
                )
                return

            triggered = await alert_service.check_alerts(user_id)
            near = await alert_service.get_near_threshold_alerts(user_id)

            if not triggered and not near:
                stats = await alert_service.get_alert_stats(user_id)
                await update.message.reply_text(
                    f"🔔 {stats['active_alerts']} active alerts, none triggered.\n"
                    "Add one with /alerts <amount> [daily|weekly|monthly]",
                    reply_markup=self.get_main_menu_keyboard()
                )
                return

            await notification_service.notify_triggered_alerts(user_id, triggered)
            currency = await self.get_user_currency(user_id)
            lines = []
            for item in triggered:
                lines.append(
                    f"🚨 {item.alert.category_name or 'Total'} ({item.alert.period}): "
                    f"{self.format_amount(item.spent, currency)} of "
                    f"{self.format_amount(item.threshold, currency)}"
                )
            for item in near:
                lines.append(
                    f"⚠️ {item.alert.category_name or 'Total'} ({item.alert.period}): "
                    f"{item.percentage:.0f}% of {self.format_amount(item.threshold, currency)}"
                )
            await update.message.reply_text("\n".join(lines), reply_markup=self.get_main_menu_keyboard())
        except Exception as e:
            await self.handle_error(update, context, e)
