"""
Australia resident income tax
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, AdditionalTaxParams,
    DeductionConfig, TaxBracket, brackets_from_bounds
)

TAX_FREE_THRESHOLD = 18200
MEDICARE_LEVY_RATE = 0.02

BRACKETS = brackets_from_bounds(
    (18200, 45000, 120000, 180000),
    (0, 0.19, 0.325, 0.37, 0.45), "A$"
)


def _medicare_levy(ctx: AdditionalTaxParams) -> float:
    return ctx.taxable_income * MEDICARE_LEVY_RATE


class AustraliaTaxStrategy(BaseTaxStrategy):
    name = "Australia"
    currency = "A$"
    country_code = "AU"

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedSuper', 'Superannuation Contributions', 27500),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [AdditionalTaxConfig('medicare', 'Medicare Levy', _medicare_levy)]

    def allowance(self, regime):
        return 'tax_free_threshold', float(TAX_FREE_THRESHOLD)
