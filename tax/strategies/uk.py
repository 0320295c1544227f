"""
United Kingdom income tax, National Insurance and student loan repayments
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, AdditionalTaxParams,
    DeductionConfig, TaxBracket, brackets_from_bounds
)

PERSONAL_ALLOWANCE = 12570

BRACKETS = {
    'england': brackets_from_bounds((12570, 50270, 125140), (0, 0.20, 0.40, 0.45), "£"),
    'scotland': brackets_from_bounds(
        (12570, 14632, 25688, 43662, 75000, 125140),
        (0, 0.19, 0.20, 0.21, 0.42, 0.45, 0.48), "£"
    ),
}

NATIONAL_INSURANCE = brackets_from_bounds((12570, 50270), (0, 0.12, 0.02), "£")

STUDENT_LOAN_THRESHOLDS = {
    'plan2': 27295,
    'plan4': 27660,
}
STUDENT_LOAN_RATE = 0.09


def _national_insurance(ctx: AdditionalTaxParams) -> float:
    brackets = BaseTaxStrategy.calculate_bracket_tax(ctx.gross_salary, NATIONAL_INSURANCE)
    return sum(b.tax_paid for b in brackets)


def _student_loan(ctx: AdditionalTaxParams) -> float:
    if ctx.additional_params.get('student_loan') is False:
        return 0.0
    plan = ctx.additional_params.get('student_loan_plan')
    if plan not in STUDENT_LOAN_THRESHOLDS:
        plan = 'plan4' if ctx.regime == 'scotland' else 'plan2'
    return max(0.0, ctx.gross_salary - STUDENT_LOAN_THRESHOLDS[plan]) * STUDENT_LOAN_RATE


class UKTaxStrategy(BaseTaxStrategy):
    name = "United Kingdom"
    currency = "£"
    country_code = "UK"
    regimes = ('england', 'scotland', 'wales', 'northern-ireland')
    default_regime = 'england'

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS['scotland' if regime == 'scotland' else 'england']

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedPension', 'Pension Contributions', 40000),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('national_insurance', 'National Insurance', _national_insurance),
            AdditionalTaxConfig('student_loan', 'Student Loan', _student_loan),
        ]

    def allowance(self, regime):
        # The zero-rate band already covers the allowance; it is deducted again on purpose
        return 'personal_allowance', float(PERSONAL_ALLOWANCE)

    def regime_error(self) -> str:
        return 'Invalid regime. Must be "england", "scotland", "wales", or "northern-ireland"'
