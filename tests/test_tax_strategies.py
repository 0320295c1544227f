"""
Tax strategy tests
"""
import pytest

from tax import TaxCalculationParams, TaxBracket, BaseTaxStrategy, tax_strategy_factory
from tax.base import brackets_from_bounds
from tax.strategies import (
    USTaxStrategy, IndiaTaxStrategy, UKTaxStrategy, CanadaTaxStrategy,
    BrazilTaxStrategy, SouthAfricaTaxStrategy
)
from tax.utils import calculate_what_if, find_user_bracket_index, summarize
from utils import ValidationError


def test_bracket_labels():
    """Labels follow Up to / range / Above"""
    brackets = brackets_from_bounds((100, 200), (0.1, 0.2, 0.3), "$")
    assert [b.label for b in brackets] == ["Up to $100", "$100 - $200", "Above $200"]
    assert brackets[1].min == 100 and brackets[1].max == 200
    assert brackets[2].max is None


def test_calculate_bracket_tax_fills_bands_in_order():
    brackets = [
        TaxBracket(min=0, max=1000, rate=0.1),
        TaxBracket(min=1000, max=None, rate=0.2),
    ]
    result = BaseTaxStrategy.calculate_bracket_tax(1500, brackets)
    assert [b.tax_paid for b in result] == pytest.approx([100, 100])
    assert brackets[0].tax_paid == 0.0


def test_us_single():
    """Standard deduction, brackets, Social Security and Medicare"""
    result = USTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=100000, regime='single'))

    assert result.taxable_income == pytest.approx(85400)
    assert result.breakdown['income_tax'] == pytest.approx(13841)
    assert result.additional_taxes['social_security'] == pytest.approx(6200)
    assert result.additional_taxes['medicare'] == pytest.approx(1450)
    assert result.total_tax == pytest.approx(21491)
    assert result.take_home_salary == pytest.approx(78509)
    assert result.effective_tax_rate == pytest.approx(21.491)
    assert result.marginal_tax_rate == pytest.approx(22)
    assert result.breakdown['standard_deduction'] == 14600
    assert result.currency == "$"
    assert result.regime == 'single'


def test_us_invalid_filing_status():
    validation = USTaxStrategy().validate_params(TaxCalculationParams(gross_salary=50000, regime='widowed'))
    assert not validation.is_valid
    assert validation.errors == ['Invalid filing status. Must be "single", "married", or "head"']


def test_us_deduction_over_limit_is_an_error():
    validation = USTaxStrategy().validate_params(
        TaxCalculationParams(gross_salary=50000, deductions={'ded401k': 30000})
    )
    assert validation.errors == ["Invalid value for 401(k) Contributions"]


def test_india_new_regime_rebate_cancels_tax():
    result = IndiaTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=1200000))

    assert result.regime == 'new'
    assert result.taxable_income == pytest.approx(1125000)
    assert result.breakdown['rebate'] == pytest.approx(52500)
    assert result.total_tax == 0
    assert result.additional_taxes == {'surcharge': 0.0, 'cess': 0.0}


def test_india_new_regime_cess_on_income_tax():
    result = IndiaTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=2000000))

    assert result.breakdown['income_tax'] == pytest.approx(185000)
    assert result.additional_taxes['cess'] == pytest.approx(7400)
    assert result.total_tax == pytest.approx(192400)


def test_india_deductions_only_in_old_regime():
    strategy = IndiaTaxStrategy()
    assert strategy.get_deductions('new') == []
    assert strategy.get_max_deductions('old') == {'ded80C': 150000, 'ded80D': 50000}

    validation = strategy.validate_params(
        TaxCalculationParams(gross_salary=900000, regime='old', deductions={'ded80C': 200000})
    )
    assert validation.errors == ["Invalid value for Section 80C"]


def test_uk_without_student_loan():
    result = UKTaxStrategy().calculate_tax(
        TaxCalculationParams(gross_salary=50000, additional_params={'student_loan': False})
    )
    assert result.taxable_income == pytest.approx(37430)
    assert result.breakdown['income_tax'] == pytest.approx(4972)
    assert result.additional_taxes['national_insurance'] == pytest.approx(4491.6)
    assert result.additional_taxes['student_loan'] == 0
    assert result.total_tax == pytest.approx(9463.6)


def test_uk_student_loan_defaults_to_plan2():
    result = UKTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=50000))
    assert result.additional_taxes['student_loan'] == pytest.approx(2043.45)


def test_uk_deduction_over_limit_is_a_warning():
    validation = UKTaxStrategy().validate_params(
        TaxCalculationParams(gross_salary=50000, deductions={'dedPension': 50000})
    )
    assert validation.is_valid
    assert validation.warnings == ["Deduction dedPension exceeds maximum allowed value"]


def test_canada_ontario_uses_own_brackets():
    strategy = CanadaTaxStrategy()
    assert strategy.get_brackets('ontario')[0].rate == pytest.approx(0.0505)
    assert strategy.get_brackets('alberta')[0].rate == pytest.approx(0.15)


def test_south_africa_primary_rebate():
    result = SouthAfricaTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=200000))
    assert result.breakdown['primary_rebate'] == pytest.approx(17235)
    assert result.breakdown['income_tax'] == pytest.approx(18765)
    assert result.additional_taxes['uif'] == pytest.approx(2000)
    assert result.total_tax == pytest.approx(20765)


def test_brazil_inss():
    result = BrazilTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=3000))
    assert result.breakdown['income_tax'] == pytest.approx(79.60125)
    assert result.additional_taxes['inss'] == pytest.approx(330)


def test_single_regime_country_rejects_regime():
    strategy = tax_strategy_factory.get_strategy('BR')
    validation = strategy.validate_params(TaxCalculationParams(gross_salary=1000, regime='federal'))
    assert validation.errors == ["Invalid regime. Brazil uses a single tax system"]


def test_zero_salary_is_a_warning():
    validation = USTaxStrategy().validate_params(TaxCalculationParams(gross_salary=0))
    assert validation.is_valid
    assert validation.warnings == ["Gross salary is zero"]


def test_factory_resolves_names_and_codes():
    assert tax_strategy_factory.get_strategy('usa').country_code == 'US'
    assert tax_strategy_factory.get_strategy('South Africa').country_code == 'ZA'
    assert tax_strategy_factory.has_strategy('in')
    assert len(tax_strategy_factory.supported_countries()) == 9

    with pytest.raises(ValidationError, match="Unsupported country: Narnia"):
        tax_strategy_factory.get_strategy('Narnia')


def test_what_if_and_helpers():
    strategy = USTaxStrategy()
    params = TaxCalculationParams(gross_salary=100000, regime='single')
    comparison = calculate_what_if(strategy, params, 120000)

    assert comparison['salary_difference'] == 20000
    assert comparison['tax_difference'] > 0
    assert comparison['take_home_difference'] == pytest.approx(20000 - comparison['tax_difference'])
    assert comparison['same_salary'] is False

    result = comparison['current']
    assert find_user_bracket_index(result.brackets) == 2
    assert summarize(result)['monthly_take_home'] == pytest.approx(78509 / 12)


def test_result_round_trips_through_dict():
    result = USTaxStrategy().calculate_tax(TaxCalculationParams(gross_salary=60000))
    restored = type(result).from_dict(result.to_dict())
    assert restored == result
