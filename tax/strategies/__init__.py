"""
Per-country tax strategies
"""
from .us import USTaxStrategy
from .india import IndiaTaxStrategy
from .uk import UKTaxStrategy
from .canada import CanadaTaxStrategy
from .australia import AustraliaTaxStrategy
from .germany import GermanyTaxStrategy
from .france import FranceTaxStrategy
from .brazil import BrazilTaxStrategy
from .south_africa import SouthAfricaTaxStrategy

__all__ = [
    'USTaxStrategy',
    'IndiaTaxStrategy',
    'UKTaxStrategy',
    'CanadaTaxStrategy',
    'AustraliaTaxStrategy',
    'GermanyTaxStrategy',
    'FranceTaxStrategy',
    'BrazilTaxStrategy',
    'SouthAfricaTaxStrategy'
]
