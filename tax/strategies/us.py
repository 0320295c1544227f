"""
United States federal income tax
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, AdditionalTaxParams,
    DeductionConfig, TaxBracket, brackets_from_bounds
)

SOCIAL_SECURITY_RATE = 0.062
SOCIAL_SECURITY_WAGE_BASE = 168600
MEDICARE_RATE = 0.0145
ADDITIONAL_MEDICARE_RATE = 0.009
ADDITIONAL_MEDICARE_THRESHOLD = 200000

_RATES = (0.10, 0.12, 0.22, 0.24, 0.32, 0.35, 0.37)

BRACKETS = {
    'single': brackets_from_bounds((11600, 47150, 100525, 191950, 243725, 609350), _RATES, "$"),
    'married': brackets_from_bounds((23200, 94300, 201050, 383900, 487450, 731200), _RATES, "$"),
    'head': brackets_from_bounds((16550, 63100, 100500, 191950, 243700, 609350), _RATES, "$"),
}

STANDARD_DEDUCTIONS = {
    'single': 14600,
    'married': 29200,
    'head': 21900,
}


def _social_security(ctx: AdditionalTaxParams) -> float:
    return min(ctx.gross_salary, SOCIAL_SECURITY_WAGE_BASE) * SOCIAL_SECURITY_RATE


def _medicare(ctx: AdditionalTaxParams) -> float:
    tax = ctx.gross_salary * MEDICARE_RATE
    if ctx.gross_salary > ADDITIONAL_MEDICARE_THRESHOLD:
        tax += (ctx.gross_salary - ADDITIONAL_MEDICARE_THRESHOLD) * ADDITIONAL_MEDICARE_RATE
    return tax


class USTaxStrategy(BaseTaxStrategy):
    name = "United States"
    currency = "$"
    country_code = "US"
    regimes = ('single', 'married', 'head')
    default_regime = 'single'
    strict_deductions = True

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS.get(regime or self.default_regime, BRACKETS['single'])

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('ded401k', '401(k) Contributions', 23000),
            DeductionConfig('dedHSA', 'HSA Contributions', 4150),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('social_security', 'Social Security', _social_security),
            AdditionalTaxConfig('medicare', 'Medicare', _medicare),
        ]

    def allowance(self, regime):
        return 'standard_deduction', float(STANDARD_DEDUCTIONS.get(regime, STANDARD_DEDUCTIONS['single']))

    def regime_error(self) -> str:
        return 'Invalid filing status. Must be "single", "married", or "head"'
