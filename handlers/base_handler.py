"""
Base handler
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from telegram import Update, ReplyKeyboardMarkup, KeyboardButton
from telegram.ext import ContextTypes

from services.user_service import user_service
from utils import (
    logger, check_rate_limit, ValidationError, DatabaseError, RateLimitError,
    NotFoundError, QueryTimeoutError
)
from utils.currency import format_currency

MENU_ADD_EXPENSE = "💸 Add expense"
MENU_EXPENSES = "📋 Expenses"
MENU_TAX = "🧾 Tax calculator"
MENU_BUDGETS = "📅 Budgets"
MENU_ALERTS = "🔔 Alerts"
MENU_ANALYTICS = "📈 Analytics"
MENU_HELP = "ℹ️ Help"
MENU_BACK = "🔙 Back"


class BaseHandler(ABC):
    """Shared helpers for all handlers"""

    def __init__(self):
        self.logger = logger

    @staticmethod
    def user_key(update: Update) -> str:
        return str(update.effective_user.id)

    async def handle_error(self, update: Update, context: ContextTypes.DEFAULT_TYPE, error: Exception):
        """Reply with a message matching the error type"""
        user_id = update.effective_user.id if update.effective_user else 0

        if isinstance(error, RateLimitError):
            text = f"⏰ {error.message}"
        elif isinstance(error, (ValidationError, NotFoundError)):
            text = f"❌ {error.message}"
        elif isinstance(error, QueryTimeoutError):
            text = "⌛ The request took too long. Please try again."
        elif isinstance(error, DatabaseError):
            text = "❌ Database error. Please try again later."
        else:
            text = "❌ Something went wrong. Please try again later."

        await update.message.reply_text(text, reply_markup=self.get_main_menu_keyboard())
        self.logger.error(f"Error for user {user_id}: {error}")

    async def check_user_access(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
        """Rate limit per Telegram user"""
        try:
            check_rate_limit(update.effective_user.id)
            return True
        except RateLimitError as e:
            await self.handle_error(update, context, e)
            return False

    async def get_user_currency(self, user_id: str) -> str:
        profile = await user_service.get_profile(user_id)
        return profile.currency if profile else "USD"

    def get_main_menu_keyboard(self) -> ReplyKeyboardMarkup:
        keyboard = [
            [KeyboardButton(MENU_ADD_EXPENSE), KeyboardButton(MENU_EXPENSES)],
            [KeyboardButton(MENU_TAX), KeyboardButton(MENU_BUDGETS)],
            [KeyboardButton(MENU_ALERTS), KeyboardButton(MENU_ANALYTICS)],
            [KeyboardButton(MENU_HELP)]
        ]
        return ReplyKeyboardMarkup(keyboard, resize_keyboard=True)

    def get_back_keyboard(self) -> ReplyKeyboardMarkup:
        return ReplyKeyboardMarkup([[KeyboardButton(MENU_BACK)]], resize_keyboard=True)

    def create_keyboard_from_list(self, items: List[str], columns: int = 2) -> ReplyKeyboardMarkup:
        keyboard = []
        for i in range(0, len(items), columns):
            keyboard.append([KeyboardButton(item) for item in items[i:i + columns]])
        return ReplyKeyboardMarkup(keyboard, resize_keyboard=True)

    def format_amount(self, amount, currency: str = "USD") -> str:
        return format_currency(amount, currency)

    def format_date(self, date_obj: Optional[date]) -> str:
        if hasattr(date_obj, 'strftime'):
            return date_obj.strftime("%d.%m.%Y")
        return str(date_obj)

    @abstractmethod
    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Entry point for the handler's messages"""
        pass
