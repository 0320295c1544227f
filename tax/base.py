"""
Shared machinery for per-country income tax strategies.

A strategy describes a country with data (brackets, deductions, additional
taxes) and a few hooks (allowance, rebate). BaseTaxStrategy.calculate_tax runs
the common pipeline:

    deductions + allowance -> taxable income -> bracket tax -> rebate
    -> additional taxes -> totals and rates
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace, asdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple


@dataclass
class TaxBracket:
    min: float
    max: Optional[float]
    rate: float
    label: str = ""
    tax_paid: float = 0.0


@dataclass(frozen=True)
class DeductionConfig:
    key: str
    label: str
    max_value: Optional[float] = None
    applicable_regimes: Optional[Tuple[str, ...]] = None


@dataclass
class AdditionalTaxParams:
    gross_salary: float
    taxable_income: float
    base_tax: float
    regime: Optional[str] = None
    additional_params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AdditionalTaxConfig:
    key: str
    label: str
    calculate: Callable[[AdditionalTaxParams], float]
    applicable_regimes: Optional[Tuple[str, ...]] = None


@dataclass
class TaxCalculationParams:
    gross_salary: float
    deductions: Dict[str, float] = field(default_factory=dict)
    regime: Optional[str] = None
    additional_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TaxCalculationResult:
    brackets: List[TaxBracket]
    total_tax: float
    take_home_salary: float
    taxable_income: float
    additional_taxes: Dict[str, float]
    breakdown: Dict[str, float]
    effective_tax_rate: float
    marginal_tax_rate: float
    currency: str = ""
    regime: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'TaxCalculationResult':
        return cls(
            brackets=[TaxBracket(**b) for b in data.get('brackets', [])],
            total_tax=float(data['total_tax']),
            take_home_salary=float(data['take_home_salary']),
            taxable_income=float(data['taxable_income']),
            additional_taxes=dict(data.get('additional_taxes', {})),
            breakdown=dict(data.get('breakdown', {})),
            effective_tax_rate=float(data.get('effective_tax_rate', 0)),
            marginal_tax_rate=float(data.get('marginal_tax_rate', 0)),
            currency=data.get('currency', ''),
            regime=data.get('regime')
        )


@dataclass
class TaxValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _money(value: float, symbol: str) -> str:
    if float(value).is_integer():
        return f"{symbol}{value:,.0f}"
    return f"{symbol}{value:,.2f}"


def brackets_from_bounds(bounds: Sequence[float], rates: Sequence[float], symbol: str = "") -> List[TaxBracket]:
    """Build contiguous brackets: bounds are the upper limits, the last bracket is open"""
    brackets = []
    lower = 0.0
    for index, rate in enumerate(rates):
        upper = bounds[index] if index < len(bounds) else None
        if upper is None:
            label = f"Above {_money(lower, symbol)}"
        elif not lower:
            label = f"Up to {_money(upper, symbol)}"
        else:
            label = f"{_money(lower, symbol)} - {_money(upper, symbol)}"
        brackets.append(TaxBracket(min=lower, max=upper, rate=rate, label=label))
        lower = upper if upper is not None else lower
    return brackets


class BaseTaxStrategy(ABC):
    """Template for a country's income tax calculation"""

    name: str = ""
    currency: str = ""
    country_code: str = ""
    regimes: Tuple[str, ...] = ('default',)
    default_regime: str = 'default'
    # Report out-of-range deductions as errors rather than warnings
    strict_deductions: bool = False

    @abstractmethod
    def get_brackets(self, regime: Optional[str] = None) -> List[TaxBracket]:
        ...

    @abstractmethod
    def get_deductions(self, regime: Optional[str] = None) -> List[DeductionConfig]:
        ...

    def get_additional_taxes(self) -> List[AdditionalTaxConfig]:
        return []

    def allowance(self, regime: str) -> Tuple[Optional[str], float]:
        """Breakdown key and amount of a fixed allowance added to deductions"""
        return None, 0.0

    def rebate(self, base_tax: float, taxable_income: float, regime: str) -> Tuple[Optional[str], float]:
        """Breakdown key and amount subtracted from bracket tax"""
        return None, 0.0

    def regime_error(self) -> str:
        if len(self.regimes) == 1:
            return f"Invalid regime. {self.name} uses a single tax system"
        return f"Invalid regime. Must be one of: {', '.join(self.regimes)}"

    def get_max_deductions(self, regime: Optional[str] = None) -> Dict[str, float]:
        return {
            d.key: d.max_value
            for d in self.get_deductions(regime)
            if d.max_value is not None
        }

    @staticmethod
    def calculate_bracket_tax(taxable_income: float, brackets: Sequence[TaxBracket]) -> List[TaxBracket]:
        result = []
        for bracket in brackets:
            if taxable_income <= bracket.min:
                result.append(replace(bracket, tax_paid=0.0))
                continue
            upper = taxable_income if bracket.max is None else min(taxable_income, bracket.max)
            band = max(0.0, upper - bracket.min)
            result.append(replace(bracket, tax_paid=band * bracket.rate))
        return result

    def calculate_total_deductions(self, deductions: Dict[str, float], regime: Optional[str] = None) -> float:
        total = 0.0
        for config in self.get_deductions(regime):
            if config.applicable_regimes and regime not in config.applicable_regimes:
                continue
            value = max(0.0, float(deductions.get(config.key) or 0))
            if config.max_value is not None:
                value = min(value, config.max_value)
            total += value
        return total

    def calculate_additional_taxes(self, params: TaxCalculationParams,
                                   taxable_income: float, base_tax: float) -> Dict[str, float]:
        regime = params.regime or 'default'
        context = AdditionalTaxParams(
            gross_salary=params.gross_salary,
            taxable_income=taxable_income,
            base_tax=base_tax,
            regime=params.regime,
            additional_params=params.additional_params or {}
        )
        taxes = {}
        for config in self.get_additional_taxes():
            if not config.applicable_regimes or regime in config.applicable_regimes:
                taxes[config.key] = config.calculate(context)
        return taxes

    @staticmethod
    def calculate_effective_tax_rate(total_tax: float, gross_salary: float) -> float:
        return total_tax / gross_salary * 100 if gross_salary > 0 else 0.0

    @staticmethod
    def calculate_marginal_tax_rate(taxable_income: float, brackets: Sequence[TaxBracket]) -> float:
        for bracket in brackets:
            if taxable_income > bracket.min and (bracket.max is None or taxable_income <= bracket.max):
                return bracket.rate * 100
        return 0.0

    def validate_params(self, params: TaxCalculationParams) -> TaxValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        if params.gross_salary < 0:
            errors.append("Gross salary cannot be negative")
        if params.gross_salary == 0:
            warnings.append("Gross salary is zero")

        if params.regime and params.regime not in self.regimes:
            errors.append(self.regime_error())

        regime = params.regime or self.default_regime
        configs = {d.key: d for d in self.get_deductions(regime)}
        for key, value in (params.deductions or {}).items():
            try:
                value = float(value)
            except (TypeError, ValueError):
                label = configs[key].label if key in configs else key
                errors.append(f"Invalid value for {label}")
                continue
            if value < 0:
                errors.append(f"Deduction {key} cannot be negative")
            config = configs.get(key)
            if config and config.max_value is not None and value > config.max_value:
                if self.strict_deductions:
                    errors.append(f"Invalid value for {config.label}")
                else:
                    warnings.append(f"Deduction {key} exceeds maximum allowed value")

        return TaxValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def calculate_tax(self, params: TaxCalculationParams) -> TaxCalculationResult:
        regime = params.regime or self.default_regime
        gross = float(params.gross_salary)
        brackets = self.get_brackets(regime)

        allowance_key, allowance = self.allowance(regime)
        total_deductions = self.calculate_total_deductions(params.deductions or {}, regime) + allowance
        taxable_income = max(0.0, gross - total_deductions)

        calculated = self.calculate_bracket_tax(taxable_income, brackets)
        base_tax = sum(b.tax_paid for b in calculated)

        rebate_key, rebate = self.rebate(base_tax, taxable_income, regime)
        income_tax = max(0.0, base_tax - rebate)

        additional_taxes = self.calculate_additional_taxes(params, taxable_income, income_tax)
        total_tax = income_tax + sum(additional_taxes.values())

        breakdown = {'income_tax': income_tax, **additional_taxes}
        if rebate_key:
            breakdown[rebate_key] = rebate
        if allowance_key:
            breakdown[allowance_key] = allowance
        breakdown['total_deductions'] = total_deductions

        return TaxCalculationResult(
            brackets=calculated,
            total_tax=total_tax,
            take_home_salary=gross - total_tax,
            taxable_income=taxable_income,
            additional_taxes=additional_taxes,
            breakdown=breakdown,
            effective_tax_rate=self.calculate_effective_tax_rate(total_tax, gross),
            marginal_tax_rate=self.calculate_marginal_tax_rate(taxable_income, brackets),
            currency=self.currency,
            regime=regime
        )
