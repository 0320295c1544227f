"""
Helpers shared by the tax calculator views
"""
from dataclasses import replace
from typing import Dict, Sequence

from tax.base import BaseTaxStrategy, TaxBracket, TaxCalculationParams, TaxCalculationResult


def calculate_monthly_value(annual: float) -> float:
    return annual / 12


def find_user_bracket_index(brackets: Sequence[TaxBracket]) -> int:
    """Index of the highest bracket that pays tax, or -1"""
    index = -1
    for i, bracket in enumerate(brackets):
        if bracket.tax_paid > 0:
            index = i
    return index


def calculate_what_if(strategy: BaseTaxStrategy, params: TaxCalculationParams,
                      new_salary: float) -> Dict[str, object]:
    """Compare the current salary with new_salary under the same deductions and regime"""
    current = strategy.calculate_tax(params)
    projected = strategy.calculate_tax(replace(params, gross_salary=new_salary))
    return {
        'current': current,
        'projected': projected,
        'salary_difference': new_salary - params.gross_salary,
        'tax_difference': projected.total_tax - current.total_tax,
        'take_home_difference': projected.take_home_salary - current.take_home_salary,
        'monthly_take_home_difference': calculate_monthly_value(
            projected.take_home_salary - current.take_home_salary
        ),
        'same_salary': abs(new_salary - params.gross_salary) < 1,
    }


def summarize(result: TaxCalculationResult) -> Dict[str, float]:
    """Monthly figures for display"""
    return {
        'monthly_gross': calculate_monthly_value(result.take_home_salary + result.total_tax),
        'monthly_tax': calculate_monthly_value(result.total_tax),
        'monthly_take_home': calculate_monthly_value(result.take_home_salary),
    }
