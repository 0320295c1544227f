"""
Expense handler
"""
from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from handlers.base_handler import BaseHandler
from services.expense_service import expense_service
from utils import logger, Validator


class ExpenseHandler(BaseHandler):
    """Adds expenses from "<amount> <description>" messages and lists them"""

    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.check_user_access(update, context):
            return

        try:
            text = update.message.text.strip()
            if self.is_expense_input(text):
                await self._process_expense(update, text)
            else:
                await update.message.reply_text(
                    "❌ Wrong format. Send: amount description\nExample: 12.50 coffee",
                    reply_markup=self.get_main_menu_keyboard()
                )
        except Exception as e:
            await self.handle_error(update, context, e)

    @staticmethod
    def is_expense_input(text: str) -> bool:
        """True when text starts with a number followed by a description"""
        if not text:
            return False
        parts = text.split(' ', 1)
        if len(parts) < 2 or not parts[1].strip():
            return False
        try:
            float(parts[0].replace(',', '.'))
            return True
        except ValueError:
            return False

    async def _process_expense(self, update: Update, text: str):
        amount_str, description = text.split(' ', 1)
        user_id = self.user_key(update)
        currency = await self.get_user_currency(user_id)

        expense = await expense_service.create_expense(
            user_id=user_id,
            amount=Validator.validate_amount(amount_str),
            description=description.strip(),
            expense_date=date.today(),
            currency=currency
        )

        await update.message.reply_text(
            "✅ Expense added!\n\n"
            f"💰 Amount: {self.format_amount(expense.amount, expense.currency)}\n"
            f"📝 Description: {expense.description}\n"
            f"📅 Date: {self.format_date(expense.expense_date)}",
            reply_markup=self.get_main_menu_keyboard()
        )
        logger.info(f"Expense {expense.id} added by user {user_id}")

    async def list_expenses(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """/expenses: this month's expenses; /expenses xlsx also sends a workbook"""
        if not await self.check_user_access(update, context):
            return

        try:
            user_id = self.user_key(update)
            today = date.today()
            expenses = await expense_service.get_expenses_by_month(user_id, today.year, today.month)

            if not expenses:
                await update.message.reply_text(
                    "📋 No expenses this month yet.",
                    reply_markup=self.get_main_menu_keyboard()
                )
                return

            currency = await self.get_user_currency(user_id)
            lines = [f"📋 Expenses for {today.strftime('%B %Y')}:", ""]
            for expense in expenses[:20]:
                category = expense.category_name or "Uncategorized"
                lines.append(
                    f"{self.format_date(expense.expense_date)} · {self.format_amount(expense.amount, expense.currency)}"
                    f" · {expense.description} ({category})"
                )
            if len(expenses) > 20:
                lines.append(f"... and {len(expenses) - 20} more")
            # one total per currency, the profile currency first
            totals = {}
            for expense in expenses:
                totals[expense.currency] = totals.get(expense.currency, 0) + expense.amount
            lines.append("")
            for code in sorted(totals, key=lambda c: c != currency):
                lines.append(f"💰 Total: {self.format_amount(totals[code], code)}")

            await update.message.reply_text("\n".join(lines), reply_markup=self.get_main_menu_keyboard())

            if context.args and context.args[0].lower() in ('xlsx', 'excel'):
                workbook = await expense_service.export_expenses_excel(
                    user_id, today.replace(day=1), today
                )
                await update.message.reply_document(
                    document=workbook, filename=f"expenses_{today.strftime('%Y_%m')}.xlsx"
                )
        except Exception as e:
            await self.handle_error(update, context, e)
