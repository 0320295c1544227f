"""
France income tax with social contributions
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, DeductionConfig,
    TaxBracket, brackets_from_bounds
)

SOCIAL_CONTRIBUTION_RATE = 0.092

BRACKETS = brackets_from_bounds(
    (10777, 27478, 78570, 168994),
    (0, 0.11, 0.30, 0.41, 0.45), "€"
)


class FranceTaxStrategy(BaseTaxStrategy):
    name = "France"
    currency = "€"
    country_code = "FR"

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedSocial', 'Social Contributions', 10000),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig(
                'social_contributions', 'CSG/CRDS',
                lambda ctx: ctx.taxable_income * SOCIAL_CONTRIBUTION_RATE
            ),
        ]
