"""
Input validators
"""
import math
from datetime import datetime, date
from typing import Union, Optional, Any
from decimal import Decimal, InvalidOperation
from utils.exceptions import ValidationError

SECURITY_LIMITS = {
    'MAX_SALARY': Decimal('10000000'),
    'MIN_SALARY': Decimal('0'),
    'MAX_STRING_LENGTH': 1000,
    'MAX_DESCRIPTION_LENGTH': 2000,
}

Number = Union[str, int, float, Decimal]


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Decimal from user input, or None when it is not a finite number"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    text = str(value).strip().replace(',', '')
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return result


class Validator:
    """Static validators that raise ValidationError"""

    @staticmethod
    def validate_not_empty(value: str, field_name: str = "Field") -> str:
        if not value or not value.strip():
            raise ValidationError(f"{field_name} cannot be empty")
        return value.strip()

    @staticmethod
    def validate_length(value: str, min_length: int = 1, max_length: int = 255, field_name: str = "Field") -> str:
        value = Validator.validate_not_empty(value, field_name)
        if len(value) < min_length:
            raise ValidationError(f"{field_name} must be at least {min_length} characters")
        if len(value) > max_length:
            raise ValidationError(f"{field_name} must be at most {max_length} characters")
        return value

    @staticmethod
    def validate_salary(value: Number) -> Decimal:
        """Salary amount within SECURITY_LIMITS"""
        salary = _to_decimal(value)
        if salary is None:
            raise ValidationError("Please enter a valid salary amount")
        if salary < SECURITY_LIMITS['MIN_SALARY']:
            raise ValidationError("Salary cannot be negative")
        if salary > SECURITY_LIMITS['MAX_SALARY']:
            raise ValidationError("Salary amount exceeds maximum limit ($10,000,000)")
        return salary

    @staticmethod
    def sanitize_string(value: Optional[str], max_length: int = SECURITY_LIMITS['MAX_STRING_LENGTH']) -> str:
        """Trim, truncate and strip angle brackets"""
        if not value:
            return ""
        cleaned = str(value).strip()[:max_length]
        return cleaned.replace('<', '').replace('>', '')

    @staticmethod
    def validate_numeric(value: Number, min_value: Optional[float] = None,
                         max_value: Optional[float] = None) -> Decimal:
        number = _to_decimal(value)
        if number is None:
            raise ValidationError("Please enter a valid number")
        if min_value is not None and number < Decimal(str(min_value)):
            raise ValidationError(f"Value must be at least {min_value}")
        if max_value is not None and number > Decimal(str(max_value)):
            raise ValidationError(f"Value exceeds maximum limit of {max_value}")
        return number

    @staticmethod
    def validate_amount(amount: Number) -> Decimal:
        """Positive money amount; a comma is accepted as the decimal separator"""
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            raise ValidationError("Amount cannot be empty")

        if isinstance(amount, str):
            amount = amount.strip().replace(',', '.')

        value = _to_decimal(amount)
        if value is None:
            raise ValidationError("Invalid amount format")
        if value <= 0:
            raise ValidationError("Amount must be greater than zero")
        if value > Decimal('999999999.99'):
            raise ValidationError("Amount is too large")
        return value

    @staticmethod
    def validate_date(value: Union[str, date], format_str: str = "%Y-%m-%d") -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not value:
            raise ValidationError("Date cannot be empty")
        try:
            return datetime.strptime(value.strip(), format_str).date()
        except ValueError:
            raise ValidationError(f"Invalid date format. Use {format_str}")

    @staticmethod
    def validate_description(description: str) -> str:
        description = Validator.sanitize_string(description, SECURITY_LIMITS['MAX_DESCRIPTION_LENGTH'])
        return Validator.validate_length(description, 1, 500, "Description")

    @staticmethod
    def validate_choice(choice_str: str, max_choice: int, field_name: str = "Choice") -> int:
        if not choice_str:
            raise ValidationError(f"{field_name} cannot be empty")

        try:
            choice = int(choice_str.strip())
        except ValueError:
            raise ValidationError(f"Invalid {field_name.lower()}")
        if not (1 <= choice <= max_choice):
            raise ValidationError(f"{field_name} must be between 1 and {max_choice}")
        return choice
