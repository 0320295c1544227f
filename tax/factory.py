"""
Registry of tax strategies keyed by country code
"""
from typing import Dict, List, Optional, Type

from tax.base import BaseTaxStrategy
from tax.strategies import (
    USTaxStrategy, IndiaTaxStrategy, UKTaxStrategy, CanadaTaxStrategy,
    AustraliaTaxStrategy, GermanyTaxStrategy, FranceTaxStrategy,
    BrazilTaxStrategy, SouthAfricaTaxStrategy
)
from utils.exceptions import ValidationError
from utils.logger import logger

COUNTRY_CODES: Dict[str, str] = {
    'india': 'IN',
    'united states': 'US',
    'usa': 'US',
    'canada': 'CA',
    'united kingdom': 'UK',
    'uk': 'UK',
    'australia': 'AU',
    'germany': 'DE',
    'france': 'FR',
    'brazil': 'BR',
    'south africa': 'ZA',
}


class TaxStrategyFactory:
    """Creates strategies once and hands out the shared instance"""

    def __init__(self):
        self._strategies: Dict[str, BaseTaxStrategy] = {}

    def register(self, code: str, strategy_cls: Type[BaseTaxStrategy]):
        self._strategies[code.upper()] = strategy_cls()
        logger.debug(f"Registered tax strategy {code.upper()}")

    def resolve_code(self, country: str) -> Optional[str]:
        if not country:
            return None
        key = country.strip()
        code = COUNTRY_CODES.get(key.lower(), key.upper())
        return code if code in self._strategies else None

    def has_strategy(self, country: str) -> bool:
        return self.resolve_code(country) is not None

    def get_strategy(self, country: str) -> BaseTaxStrategy:
        code = self.resolve_code(country)
        if code is None:
            raise ValidationError(f"Unsupported country: {country}")
        return self._strategies[code]

    def get_all_strategies(self) -> List[BaseTaxStrategy]:
        return list(self._strategies.values())

    def supported_countries(self) -> List[str]:
        return list(self._strategies.keys())


tax_strategy_factory = TaxStrategyFactory()
for _code, _cls in (
    ('IN', IndiaTaxStrategy),
    ('US', USTaxStrategy),
    ('UK', UKTaxStrategy),
    ('CA', CanadaTaxStrategy),
    ('AU', AustraliaTaxStrategy),
    ('DE', GermanyTaxStrategy),
    ('FR', FranceTaxStrategy),
    ('BR', BrazilTaxStrategy),
    ('ZA', SouthAfricaTaxStrategy),
):
    tax_strategy_factory.register(_code, _cls)
