"""
India income tax under the old and new regimes
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, AdditionalTaxParams,
    DeductionConfig, TaxBracket, brackets_from_bounds
)

BRACKETS = {
    'old': brackets_from_bounds((250000, 500000, 1000000), (0, 0.05, 0.20, 0.30), "₹"),
    'new': brackets_from_bounds(
        (400000, 800000, 1200000, 1600000, 2000000, 2400000),
        (0, 0.05, 0.10, 0.15, 0.20, 0.25, 0.30), "₹"
    ),
}

STANDARD_DEDUCTIONS = {'old': 50000, 'new': 75000}

# Section 87A: (taxable income limit, maximum rebate)
REBATES = {
    'old': (500000, 12500),
    'new': (1200000, 60000),
}

# (threshold on tax payable, surcharge rate), highest first
SURCHARGE_SLABS = (
    (10000000, 0.15),
    (5000000, 0.10),
    (1000000, 0.05),
)

CESS_RATE = 0.04


def _surcharge(ctx: AdditionalTaxParams) -> float:
    for threshold, rate in SURCHARGE_SLABS:
        if ctx.base_tax > threshold:
            return ctx.base_tax * rate
    return 0.0


def _cess(ctx: AdditionalTaxParams) -> float:
    return ctx.base_tax * CESS_RATE


class IndiaTaxStrategy(BaseTaxStrategy):
    name = "India"
    currency = "₹"
    country_code = "IN"
    regimes = ('new', 'old')
    default_regime = 'new'
    strict_deductions = True

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS['old' if regime == 'old' else 'new']

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        if regime != 'old':
            return []
        return [
            DeductionConfig('ded80C', 'Section 80C', 150000),
            DeductionConfig('ded80D', 'Section 80D (Health Insurance)', 50000),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('surcharge', 'Surcharge', _surcharge),
            AdditionalTaxConfig('cess', 'Health & Education Cess', _cess),
        ]

    def allowance(self, regime):
        return 'standard_deduction', float(STANDARD_DEDUCTIONS['old' if regime == 'old' else 'new'])

    def rebate(self, base_tax, taxable_income, regime):
        limit, maximum = REBATES['old' if regime == 'old' else 'new']
        if taxable_income <= limit:
            return 'rebate', min(base_tax, maximum)
        return 'rebate', 0.0

    def regime_error(self) -> str:
        return 'Invalid regime. Must be "new" or "old"'
