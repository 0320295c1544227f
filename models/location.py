"""
Geographic hierarchy (country > state > city > locality) and cost-of-living models
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from models.fields import parse_datetime, to_decimal

EXPENSE_TYPES = ('housing', 'food', 'transport', 'utilities', 'healthcare', 'entertainment', 'other')


@dataclass
class Country:
    id: Optional[int] = None
    code: str = ""
    name: str = ""
    currency: Optional[str] = None
    region: Optional[str] = None
    population: Optional[int] = None
    gdp_per_capita: Optional[Decimal] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'currency': self.currency,
            'region': self.region,
            'population': self.population,
            'gdp_per_capita': float(self.gdp_per_capita) if self.gdp_per_capita is not None else None
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Country':
        gdp = data.get('gdp_per_capita')
        return cls(
            id=data.get('id'),
            code=data['code'],
            name=data['name'],
            currency=data.get('currency'),
            region=data.get('region'),
            population=data.get('population'),
            gdp_per_capita=to_decimal(gdp) if gdp is not None else None
        )


@dataclass
class State:
    id: Optional[int] = None
    country_id: Optional[int] = None
    name: str = ""
    code: Optional[str] = None

    def to_dict(self) -> dict:
        return {'id': self.id, 'country_id': self.country_id, 'name': self.name, 'code': self.code}

    @classmethod
    def from_dict(cls, data: dict) -> 'State':
        return cls(
            id=data.get('id'),
            country_id=data.get('country_id'),
            name=data['name'],
            code=data.get('code')
        )


@dataclass
class City:
    id: Optional[int] = None
    state_id: Optional[int] = None
    name: str = ""
    population: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'state_id': self.state_id,
            'name': self.name,
            'population': self.population,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'timezone': self.timezone
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'City':
        lat, lon = data.get('latitude'), data.get('longitude')
        return cls(
            id=data.get('id'),
            state_id=data.get('state_id'),
            name=data['name'],
            population=data.get('population'),
            latitude=float(lat) if lat is not None else None,
            longitude=float(lon) if lon is not None else None,
            timezone=data.get('timezone')
        )


@dataclass
class Locality:
    id: Optional[int] = None
    city_id: Optional[int] = None
    name: str = ""

    def to_dict(self) -> dict:
        return {'id': self.id, 'city_id': self.city_id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: dict) -> 'Locality':
        return cls(id=data.get('id'), city_id=data.get('city_id'), name=data['name'])


@dataclass
class LocationExpense:
    """Baseline monthly cost of one expense type at a location"""
    id: Optional[int] = None
    country_code: str = ""
    state_code: Optional[str] = None
    city_code: Optional[str] = None
    expense_type: str = "other"
    estimated_amount: Decimal = Decimal('0')
    currency: str = "USD"
    is_flexible: bool = False
    reduction_potential: float = 0.0
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'LocationExpense':
        return cls(
            id=data.get('id'),
            country_code=data['country_code'],
            state_code=data.get('state_code'),
            city_code=data.get('city_code'),
            expense_type=data.get('expense_type') or 'other',
            estimated_amount=to_decimal(data.get('estimated_amount')),
            currency=data.get('currency') or 'USD',
            is_flexible=bool(data.get('is_flexible', False)),
            reduction_potential=float(data.get('reduction_potential') or 0),
            description=data.get('description'),
            created_at=parse_datetime(data.get('created_at')),
            updated_at=parse_datetime(data.get('updated_at'))
        )


@dataclass(frozen=True)
class HabitProfile:
    """How a spending style adjusts fixed and flexible costs"""
    name: str
    type: str
    fixed_expense_reduction: float
    flexible_expense_reduction: float
    flexible_expense_increase: float
    description: str = ""


@dataclass
class CalculatedExpense:
    type: str
    base_amount: float
    adjusted_amount: float
    currency: str
    is_flexible: bool
    reduction_potential: float
    savings_potential: float
    description: str = ""


@dataclass
class ExpenseBreakdown:
    housing: float = 0.0
    food: float = 0.0
    transport: float = 0.0
    utilities: float = 0.0
    healthcare: float = 0.0
    entertainment: float = 0.0
    other: float = 0.0
    total: float = 0.0
    currency: str = "USD"
    savings_potential: float = 0.0
    breakdown: List[CalculatedExpense] = field(default_factory=list)


@dataclass
class SpendingHabitResult:
    habit: HabitProfile
    expenses: ExpenseBreakdown
    total_savings: float
    monthly_savings: float
    annual_savings: float
    savings_rate: float
