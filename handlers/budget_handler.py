"""
Budget handler
"""
from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from handlers.base_handler import BaseHandler
from services.budget_service import budget_service, month_bounds
from services.expense_service import expense_service
from utils import ValidationError


class BudgetHandler(BaseHandler):
    """/budgets and /budget commands"""

    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Show progress of every budget"""
        if not await self.check_user_access(update, context):
            return

        try:
            user_id = self.user_key(update)
            progress = await budget_service.get_budget_progress(user_id)
            if not progress:
                await update.message.reply_text(
                    "📅 You have no budgets yet.\n"
                    "Create one with /budget <category_id> <amount> (category_id 0 = all spending)",
                    reply_markup=self.get_main_menu_keyboard()
                )
                return

            currency = await self.get_user_currency(user_id)
            lines = ["📅 Budgets:", ""]
            for p in progress:
                budget = p.budget
                icon = "🔴" if p.is_over_budget else ("🟡" if p.percentage_used >= 80 else "🟢")
                lines.append(
                    f"{icon} {budget.category_name or 'Overall'} "
                    f"({self.format_date(budget.start_date)} - {self.format_date(budget.end_date)})\n"
                    f"   {self.format_amount(p.spent, currency)} of {self.format_amount(budget.amount, currency)}"
                    f" · {p.percentage_used:.0f}%"
                )
            await update.message.reply_text("\n".join(lines), reply_markup=self.get_main_menu_keyboard())
        except Exception as e:
            await self.handle_error(update, context, e)

    async def create(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """/budget <category_id> <amount>: monthly budget for the current month"""
        if not await self.check_user_access(update, context):
            return

        try:
            args = list(context.args or [])
            if len(args) != 2:
                categories = await expense_service.get_categories()
                listing = "\n".join(f"{c.id}. {c.icon or ''} {c.name}".replace("  ", " ") for c in categories)
                raise ValidationError(
                    "Usage: /budget <category_id> <amount>\n0 = all spending\n\n" + listing
                )

            try:
                category_id = int(args[0])
            except ValueError:
                raise ValidationError("Category id must be a number")
            category_id = category_id or None
            if category_id is not None and await expense_service.get_category(category_id) is None:
                raise ValidationError(f"Category {category_id} does not exist")

            user_id = self.user_key(update)
            today = date.today()
            start, end = month_bounds(today.year, today.month)
            budget = await budget_service.create_budget(user_id, category_id, args[1], start, end, 'monthly')

            currency = await self.get_user_currency(user_id)
            await update.message.reply_text(
                f"✅ Budget of {self.format_amount(budget.amount, currency)} set for "
                f"{today.strftime('%B %Y')}",
                reply_markup=self.get_main_menu_keyboard()
            )
        except Exception as e:
            await self.handle_error(update, context, e)
