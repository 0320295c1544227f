"""
Tax calculator handler
"""
from typing import Any, Dict, List

from telegram import Update
from telegram.ext import ContextTypes

from handlers.base_handler import BaseHandler
from services.calculation_storage_service import calculation_storage_service
from services.tax_calculation_service import tax_calculation_service
from tax import TaxCalculationResult, tax_strategy_factory
from tax.utils import summarize, find_user_bracket_index
from utils import ValidationError
from utils.currency import format_currency_with_custom_symbol

USAGE = (
    "🧾 Tax calculator\n\n"
    "Usage: /tax <country> <salary> [regime]\n"
    "Example: /tax US 85000 single\n\n"
    "Countries: {countries}"
)


class TaxHandler(BaseHandler):
    """/tax command"""

    async def handle(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.check_user_access(update, context):
            return

        try:
            args = list(context.args or [])
            drafts = calculation_storage_service.for_user(self.user_key(update))
            if not args:
                draft = drafts.get_draft()
                if not draft:
                    await update.message.reply_text(self._usage(), reply_markup=self.get_main_menu_keyboard())
                    return
                request = draft
            else:
                request = self.parse_args(args)

            result = tax_calculation_service.calculate(
                request['country'], request['salary'], regime=request.get('regime')
            )
            drafts.save_draft(request)

            await update.message.reply_text(
                self.format_result(request['country'], result),
                reply_markup=self.get_main_menu_keyboard()
            )
        except Exception as e:
            await self.handle_error(update, context, e)

    @staticmethod
    def parse_args(args: List[str]) -> Dict[str, Any]:
        if len(args) < 2:
            raise ValidationError("Usage: /tax <country> <salary> [regime]")
        request: Dict[str, Any] = {'country': args[0], 'salary': args[1].replace(',', '')}
        if len(args) > 2:
            request['regime'] = args[2].lower()
        return request

    def _usage(self) -> str:
        return USAGE.format(countries=", ".join(tax_strategy_factory.supported_countries()))

    def format_result(self, country: str, result: TaxCalculationResult) -> str:
        strategy = tax_strategy_factory.get_strategy(country)
        symbol = strategy.currency

        def money(value: float) -> str:
            return format_currency_with_custom_symbol(value, symbol)

        monthly = summarize(result)

        lines = [f"🧾 {strategy.name} income tax"]
        if result.regime and len(strategy.regimes) > 1:
            lines.append(f"Regime: {result.regime}")
        lines += [
            "",
            f"💰 Taxable income: {money(result.taxable_income)}",
            f"🏛 Total tax: {money(result.total_tax)}",
            f"✅ Take-home: {money(result.take_home_salary)}",
            f"📆 Monthly take-home: {money(monthly['monthly_take_home'])}",
            f"📉 Effective rate: {result.effective_tax_rate:.2f}%",
            f"📈 Marginal rate: {result.marginal_tax_rate:.2f}%",
        ]

        if result.additional_taxes:
            lines += ["", "Additional taxes:"]
            for key, amount in result.additional_taxes.items():
                lines.append(f"• {key.replace('_', ' ')}: {money(amount)}")

        current = find_user_bracket_index(result.brackets)
        lines += ["", "Brackets:"]
        for i, bracket in enumerate(result.brackets):
            marker = "👉 " if i == current else "• "
            lines.append(
                f"{marker}{bracket.label}: {bracket.rate * 100:g}% → {money(bracket.tax_paid)}"
            )
        return "\n".join(lines)
