"""
Brazil IRPF with INSS contributions
"""
from typing import List, Optional

from tax.base import (
    BaseTaxStrategy, AdditionalTaxConfig, DeductionConfig,
    TaxBracket, brackets_from_bounds
)

INSS_RATE = 0.11
INSS_CEILING = 713.10

BRACKETS = brackets_from_bounds(
    (2112, 2826.65, 3751.05, 4664.68),
    (0, 0.075, 0.15, 0.225, 0.275), "R$"
)


class BrazilTaxStrategy(BaseTaxStrategy):
    name = "Brazil"
    currency = "R$"
    country_code = "BR"

    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        return BRACKETS

    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        return [
            DeductionConfig('dedINSS', 'INSS Contributions', 5000),
            DeductionConfig('dedOther', 'Other Deductions'),
        ]

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return [
            AdditionalTaxConfig('inss', 'INSS', lambda ctx: min(ctx.gross_salary * INSS_RATE, INSS_CEILING)),
        ]
