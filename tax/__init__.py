"""
Multi-country salary tax calculator
"""
from .base import (
    BaseTaxStrategy,
    TaxBracket,
    DeductionConfig,
    AdditionalTaxConfig,
    AdditionalTaxParams,
    TaxCalculationParams,
    TaxCalculationResult,
    TaxValidationResult
)
from .factory import TaxStrategyFactory, tax_strategy_factory

__all__ = [
    'BaseTaxStrategy',
    'TaxBracket',
    'DeductionConfig',
    'AdditionalTaxConfig',
    'AdditionalTaxParams',
    'TaxCalculationParams',
    'TaxCalculationResult',
    'TaxValidationResult',
    'TaxStrategyFactory',
    'tax_strategy_factory'
]
