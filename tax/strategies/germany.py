"""
Germany income tax with solidarity surcharge and church tax
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, DeductionConfig,
    TaxBracket, brackets_from_bounds
)

SOLIDARITY_RATE = 0.055
CHURCH_TAX_RATE = 0.09

BRACKETS = brackets_from_bounds(
    (10908, 15999, 62809, 277825),
    (0, 0.14, 0.23942, 0.42, 0.45), "€"
)


class GermanyTaxStrategy(BaseTaxStrategy):
    name = "Germany"
    currency = "€"
    country_code = "DE"

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedInsurance', 'Insurance Premiums', 5000),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('soli', 'Solidarity Surcharge', lambda ctx: ctx.base_tax * SOLIDARITY_RATE),
            AdditionalTaxConfig('church_tax', 'Church Tax', lambda ctx: ctx.base_tax * CHURCH_TAX_RATE),
        ]
