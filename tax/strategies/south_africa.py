"""
South Africa income tax with the primary rebate and UIF
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, DeductionConfig,
    TaxBracket, brackets_from_bounds
)

PRIMARY_REBATE = 17235
UIF_RATE = 0.01
UIF_MONTHLY_CAP = 177.12

BRACKETS = brackets_from_bounds(
    (237100, 370500, 512800, 673000, 857900, 1817000),
    (0.18, 0.26, 0.31, 0.36, 0.39, 0.41, 0.45), "R"
)


class SouthAfricaTaxStrategy(BaseTaxStrategy):
    name = "South Africa"
    currency = "R"
    country_code = "ZA"

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedRetirement', 'Retirement Annuity', 50000),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('uif', 'UIF', lambda ctx: min(ctx.gross_salary * UIF_RATE, UIF_MONTHLY_CAP * 12)),
        ]

    def rebate(self, base_tax, taxable_income, regime):
        return 'primary_rebate', min(base_tax, PRIMARY_REBATE)
