"""
FinAssist bot entry point
"""
import sys

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from config import settings
from handlers import AlertHandler, AnalyticsHandler, BudgetHandler, ExpenseHandler, TaxHandler
from handlers.base_handler import (
    MENU_ADD_EXPENSE, MENU_ALERTS, MENU_ANALYTICS, MENU_BACK, MENU_BUDGETS,
    MENU_EXPENSES, MENU_HELP, MENU_TAX
)
from services.database_service import db_service
from services.user_service import user_service
from utils import logger, ConfigurationError

expense_handler = ExpenseHandler()
budget_handler = BudgetHandler()
alert_handler = AlertHandler()
analytics_handler = AnalyticsHandler()
tax_handler = TaxHandler()

HELP_TEXT = """
🤖 FinAssist - personal finance assistant

💸 Expenses
Send "amount description", e.g. "12.50 coffee"
/expenses - this month's expenses (/expenses xlsx for a spreadsheet)

🧾 Taxes
/tax <country> <salary> [regime] - income tax estimate
/tax - repeat the last calculation

📅 Budgets
/budgets - budget progress
/budget <category_id> <amount> - monthly budget

🔔 Alerts
/alerts - check spending alerts
/alerts <amount> [daily|weekly|monthly] - new alert

📈 Analytics
/analytics [days] - spending report with chart

⚙️ Settings
/currency <code> - display currency
"""


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        user = update.effective_user
        profile = await user_service.get_profile(str(user.id))
        if not profile:
            profile = await user_service.create_or_update_profile(
                str(user.id), first_name=user.first_name, last_name=user.last_name
            )
            logger.info(f"New profile: {profile.display_name} ({user.id})")

        await update.message.reply_text(
            f"🤖 Welcome to FinAssist, {profile.display_name}!\n\n"
            "I can track your expenses, budgets and alerts, "
            "and estimate income tax in nine countries.\n\n"
            "Choose an action below or send /help.",
            reply_markup=expense_handler.get_main_menu_keyboard()
        )
    except Exception as e:
        await expense_handler.handle_error(update, context, e)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(HELP_TEXT, reply_markup=expense_handler.get_main_menu_keyboard())


async def currency_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        if not context.args:
            currency = await expense_handler.get_user_currency(str(update.effective_user.id))
            await update.message.reply_text(f"💱 Current currency: {currency}\nChange with /currency <code>")
            return
        profile = await user_service.update_preferences(str(update.effective_user.id), currency=context.args[0])
        await update.message.reply_text(f"✅ Currency set to {profile.currency}")
    except Exception as e:
        await expense_handler.handle_error(update, context, e)


async def message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Menu buttons and free-text expenses"""
    text = update.message.text.strip()
    context.args = []

    if text == MENU_ADD_EXPENSE:
        await update.message.reply_text(
            'Send the expense as "amount description", e.g. "12.50 coffee"',
            reply_markup=expense_handler.get_back_keyboard()
        )
    elif text == MENU_EXPENSES:
        await expense_handler.list_expenses(update, context)
    elif text == MENU_TAX:
        await tax_handler.handle(update, context)
    elif text == MENU_BUDGETS:
        await budget_handler.handle(update, context)
    elif text == MENU_ALERTS:
        await alert_handler.handle(update, context)
    elif text == MENU_ANALYTICS:
        await analytics_handler.handle(update, context)
    elif text == MENU_HELP:
        await help_command(update, context)
    elif text == MENU_BACK:
        await start_command(update, context)
    elif expense_handler.is_expense_input(text):
        await expense_handler.handle(update, context)
    else:
        await update.message.reply_text(
            "❌ Unknown command. Use the menu or /help.",
            reply_markup=expense_handler.get_main_menu_keyboard()
        )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    logger.error(f"Unhandled error: {context.error}")
    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text(
            "❌ Something went wrong. Please try again later.",
            reply_markup=expense_handler.get_main_menu_keyboard()
        )


async def initialize_services(application: Application):
    logger.info("Initialising services...")
    await db_service.initialize()
    await db_service.init_schema()
    logger.info("✅ Services initialised")


async def cleanup_services(application: Application):
    await db_service.close()
    logger.info("✅ Resources released")


def build_application() -> Application:
    errors = settings.validate_bot()
    if errors:
        raise ConfigurationError("; ".join(errors))
    if not settings.database.is_configured:
        raise ConfigurationError("Database is not configured")

    application = (
        Application.builder()
        .token(settings.bot.token)
        .post_init(initialize_services)
        .post_shutdown(cleanup_services)
        .build()
    )

    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("currency", currency_command))
    application.add_handler(CommandHandler("tax", tax_handler.handle))
    application.add_handler(CommandHandler("expenses", expense_handler.list_expenses))
    application.add_handler(CommandHandler("budgets", budget_handler.handle))
    application.add_handler(CommandHandler("budget", budget_handler.create))
    application.add_handler(CommandHandler("alerts", alert_handler.handle))
    application.add_handler(CommandHandler("analytics", analytics_handler.handle))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, message_handler))
    application.add_error_handler(error_handler)
    return application


def main():
    try:
        logger.info("🚀 Starting FinAssist...")
        application = build_application()
        application.run_polling(allowed_updates=Update.ALL_TYPES, drop_pending_updates=True)
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("🛑 Stopped by user")
    logger.info("👋 FinAssist stopped")


if __name__ == "__main__":
    main()
