"""
Conversions between database/JSON values and model attributes
"""
import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


def to_decimal(value: Any, default: str = '0') -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(default)


def iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_json(value: Any, default: Any = None) -> Any:
    """JSONB columns arrive as text from asyncpg unless a codec is set"""
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value
