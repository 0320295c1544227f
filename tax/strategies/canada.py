"""
Canada federal income tax with Ontario provincial rates
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, AdditionalTaxParams,
    DeductionConfig, TaxBracket, brackets_from_bounds
)

BASIC_PERSONAL_AMOUNT = 15000

CPP_RATE = 0.0595
CPP_MAX_EARNINGS = 66600
EI_RATE = 0.0163
EI_MAX_EARNINGS = 61500

FEDERAL_BRACKETS = brackets_from_bounds(
    (55867, 111733, 173205, 246752),
    (0.15, 0.205, 0.26, 0.29, 0.33), "C$"
)

ONTARIO_BRACKETS = brackets_from_bounds(
    (51446, 102894, 150000, 220000),
    (0.0505, 0.0915, 0.1116, 0.1216, 0.1316), "C$"
)

PROVINCES = (
    'federal', 'ontario', 'quebec', 'bc', 'alberta', 'manitoba',
    'saskatchewan', 'nova-scotia', 'new-brunswick', 'pei', 'newfoundland'
)


def _cpp(ctx: AdditionalTaxParams) -> float:
    return min(ctx.gross_salary * CPP_RATE, CPP_MAX_EARNINGS * CPP_RATE)


def _ei(ctx: AdditionalTaxParams) -> float:
    return min(ctx.gross_salary * EI_RATE, EI_MAX_EARNINGS * EI_RATE)


class CanadaTaxStrategy(BaseTaxStrategy):
    name = "Canada"
    currency = "C$"
    country_code = "CA"
    regimes = PROVINCES
    default_regime = 'federal'

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        # Only Ontario has its own table; other provinces use the federal one
        return ONTARIO_BRACKETS if regime == 'ontario' else FEDERAL_BRACKETS

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedRRSP', 'RRSP Contributions', 31560),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('cpp', 'Canada Pension Plan', _cpp),
            AdditionalTaxConfig('ei', 'Employment Insurance', _ei),
        ]

    def allowance(self, regime):
        return 'basic_personal_amount', float(BASIC_PERSONAL_AMOUNT)

    def regime_error(self) -> str:
        return "Invalid regime. Must be a valid Canadian province/territory"
