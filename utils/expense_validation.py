"""
Field-level validation for expense records.

Unlike Validator, these checks never raise: they collect every problem into a
ValidationResult so a form can show all messages at once. Errors block saving,
warnings are advisory.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from utils.currency import get_supported_currencies


class ExpenseCategory(str, Enum):
    FOOD_AND_DRINKS = "food_and_drinks"
    TRANSPORTATION = "transportation"
    HOUSING = "housing"
    UTILITIES = "utilities"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    CLOTHING = "clothing"
    ENTERTAINMENT = "entertainment"
    TRAVEL = "travel"
    PERSONAL_CARE = "personal_care"
    HOBBIES = "hobbies"
    INSURANCE = "insurance"
    TAXES = "taxes"
    INVESTMENTS = "investments"
    DEBT_PAYMENT = "debt_payment"
    BUSINESS = "business"
    PROFESSIONAL_DEVELOPMENT = "professional_development"
    TECHNOLOGY = "technology"
    SUBSCRIPTIONS = "subscriptions"
    GIFTS = "gifts"
    CHARITY = "charity"
    OTHER = "other"


@dataclass(frozen=True)
class CategoryMetadata:
    name: str
    description: str
    icon: str
    color: str
    is_tax_deductible: bool
    default_budget: int


CATEGORY_METADATA: Dict[ExpenseCategory, CategoryMetadata] = {
    ExpenseCategory.FOOD_AND_DRINKS: CategoryMetadata('Food & Drinks', 'Groceries, restaurants and takeaway', '🍽️', '#FF6B6B', False, 500),
    ExpenseCategory.TRANSPORTATION: CategoryMetadata('Transportation', 'Fuel, public transport and ride sharing', '🚗', '#4ECDC4', False, 300),
    ExpenseCategory.HOUSING: CategoryMetadata('Housing', 'Rent, mortgage and home maintenance', '🏠', '#45B7D1', False, 1500),
    ExpenseCategory.UTILITIES: CategoryMetadata('Utilities', 'Electricity, water, gas and internet', '⚡', '#96CEB4', False, 200),
    ExpenseCategory.HEALTHCARE: CategoryMetadata('Healthcare', 'Doctor visits, medicine and treatment', '🏥', '#FFEAA7', True, 300),
    ExpenseCategory.EDUCATION: CategoryMetadata('Education', 'Tuition, courses and books', '📚', '#DDA0DD', True, 400),
    ExpenseCategory.CLOTHING: CategoryMetadata('Clothing', 'Clothes, shoes and accessories', '👕', '#FFB6C1', False, 200),
    ExpenseCategory.ENTERTAINMENT: CategoryMetadata('Entertainment', 'Movies, events and games', '🎬', '#98D8C8', False, 150),
    ExpenseCategory.TRAVEL: CategoryMetadata('Travel', 'Flights, hotels and vacations', '✈️', '#F7DC6F', False, 600),
    ExpenseCategory.PERSONAL_CARE: CategoryMetadata('Personal Care', 'Haircuts, cosmetics and spa', '💅', '#BB8FCE', False, 100),
    ExpenseCategory.HOBBIES: CategoryMetadata('Hobbies', 'Supplies and equipment for hobbies', '🎨', '#85C1E9', False, 100),
    ExpenseCategory.INSURANCE: CategoryMetadata('Insurance', 'Health, life, car and home insurance', '🛡️', '#F8C471', False, 250),
    ExpenseCategory.TAXES: CategoryMetadata('Taxes', 'Income, property and other taxes', '💰', '#82E0AA', False, 0),
    ExpenseCategory.INVESTMENTS: CategoryMetadata('Investments', 'Stocks, funds and retirement contributions', '📈', '#F1948A', False, 500),
    ExpenseCategory.DEBT_PAYMENT: CategoryMetadata('Debt Payment', 'Loan and credit card payments', '💳', '#85C1E9', False, 400),
    ExpenseCategory.BUSINESS: CategoryMetadata('Business', 'Work-related purchases and services', '💼', '#D7BDE2', True, 300),
    ExpenseCategory.PROFESSIONAL_DEVELOPMENT: CategoryMetadata('Professional Development', 'Certifications, conferences and training', '🎓', '#F8C471', True, 200),
    ExpenseCategory.TECHNOLOGY: CategoryMetadata('Technology', 'Devices, software and gadgets', '💻', '#A9CCE3', False, 150),
    ExpenseCategory.SUBSCRIPTIONS: CategoryMetadata('Subscriptions', 'Streaming, apps and memberships', '📱', '#FAD7A0', False, 50),
    ExpenseCategory.GIFTS: CategoryMetadata('Gifts', 'Presents for friends and family', '🎁', '#F1948A', False, 100),
    ExpenseCategory.CHARITY: CategoryMetadata('Charity', 'Donations to charitable organisations', '🤝', '#82E0AA', True, 100),
    ExpenseCategory.OTHER: CategoryMetadata('Other', 'Everything else', '📦', '#BDC3C7', False, 100),
}


class ErrorCode(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_CURRENCY = "INVALID_CURRENCY"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_DATE = "INVALID_DATE"
    INVALID_DESCRIPTION = "INVALID_DESCRIPTION"
    INVALID_TAGS = "INVALID_TAGS"
    INVALID_LOCATION = "INVALID_LOCATION"
    INVALID_RECEIPT_URL = "INVALID_RECEIPT_URL"
    INVALID_RECURRING_INTERVAL = "INVALID_RECURRING_INTERVAL"
    AMOUNT_TOO_HIGH = "AMOUNT_TOO_HIGH"
    AMOUNT_TOO_LOW = "AMOUNT_TOO_LOW"
    FUTURE_DATE = "FUTURE_DATE"
    PAST_DATE_TOO_OLD = "PAST_DATE_TOO_OLD"
    DUPLICATE_EXPENSE = "DUPLICATE_EXPENSE"


class WarningCode(str, Enum):
    HIGH_AMOUNT = "HIGH_AMOUNT"
    UNUSUAL_CATEGORY = "UNUSUAL_CATEGORY"
    MISSING_RECEIPT = "MISSING_RECEIPT"
    MISSING_LOCATION = "MISSING_LOCATION"
    MISSING_TAGS = "MISSING_TAGS"
    POTENTIAL_DUPLICATE = "POTENTIAL_DUPLICATE"


RECURRING_INTERVALS = ('daily', 'weekly', 'monthly', 'quarterly', 'yearly')


@dataclass
class ExpenseValidationConfig:
    max_amount: float = 1_000_000
    min_amount: float = 0.01
    max_description_length: int = 500
    max_tags: int = 10
    max_tag_length: int = 50
    max_location_length: int = 200
    max_receipt_url_length: int = 1000
    max_days_in_past: int = 1825
    max_days_in_future: int = 30
    high_amount_threshold: float = 10_000
    supported_currencies: Tuple[str, ...] = field(default_factory=lambda: tuple(get_supported_currencies()))


@dataclass
class ValidationIssue:
    field: str
    code: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    def add_error(self, field_name: str, code: ErrorCode, message: str, value: Any = None):
        self.errors.append(ValidationIssue(field_name, code.value, message, value))
        self.is_valid = False

    def add_warning(self, field_name: str, code: WarningCode, message: str, value: Any = None):
        self.warnings.append(ValidationIssue(field_name, code.value, message, value))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.is_valid = not self.errors
        return self

    @property
    def messages(self) -> List[str]:
        return [issue.message for issue in self.errors]


def _coerce_category(value: Any) -> Optional[ExpenseCategory]:
    """Accept an ExpenseCategory, its value or its display name"""
    if isinstance(value, ExpenseCategory):
        return value
    text = str(value).strip().lower()
    try:
        return ExpenseCategory(text)
    except ValueError:
        pass
    for category, meta in CATEGORY_METADATA.items():
        if meta.name.lower() == text:
            return category
    return None


def get_category_metadata(category: Any) -> Optional[CategoryMetadata]:
    member = _coerce_category(category)
    return CATEGORY_METADATA.get(member) if member else None


def get_tax_deductible_categories() -> List[ExpenseCategory]:
    return [category for category, meta in CATEGORY_METADATA.items() if meta.is_tax_deductible]


class ExpenseValidator:
    """Validates expense form data against an ExpenseValidationConfig"""

    def __init__(self, config: Optional[ExpenseValidationConfig] = None):
        self.config = config or ExpenseValidationConfig()

    def validate_amount(self, amount: Any, currency: str = "USD") -> ValidationResult:
        result = ValidationResult()
        try:
            value = float(amount)
        except (TypeError, ValueError):
            value = math.nan
        if isinstance(amount, bool) or math.isnan(value) or math.isinf(value):
            result.add_error('amount', ErrorCode.INVALID_AMOUNT, "Amount must be a valid number", amount)
            return result

        if value < self.config.min_amount:
            result.add_error('amount', ErrorCode.AMOUNT_TOO_LOW,
                             f"Amount must be at least {self.config.min_amount} {currency}", amount)
        elif value > self.config.max_amount:
            result.add_error('amount', ErrorCode.AMOUNT_TOO_HIGH,
                             f"Amount cannot exceed {self.config.max_amount} {currency}", amount)
        elif value > self.config.high_amount_threshold:
            result.add_warning('amount', WarningCode.HIGH_AMOUNT,
                               f"This is a high amount expense ({value} {currency}). Please verify the amount.",
                               amount)
        return result

    def validate_currency(self, currency: Optional[str]) -> ValidationResult:
        result = ValidationResult()
        if not currency:
            result.add_error('currency', ErrorCode.INVALID_CURRENCY, "Currency is required")
        elif currency.upper() not in self.config.supported_currencies:
            supported = ', '.join(self.config.supported_currencies)
            result.add_error('currency', ErrorCode.INVALID_CURRENCY,
                             f"Currency {currency} is not supported. Supported currencies: {supported}", currency)
        return result

    def validate_category(self, category: Any) -> ValidationResult:
        result = ValidationResult()
        if category is None or category == "":
            result.add_error('category', ErrorCode.INVALID_CATEGORY, "Category is required")
        elif _coerce_category(category) is None:
            valid = ', '.join(c.value for c in ExpenseCategory)
            result.add_error('category', ErrorCode.INVALID_CATEGORY,
                             f"Invalid category. Valid categories: {valid}", category)
        return result

    def validate_description(self, description: Optional[str]) -> ValidationResult:
        result = ValidationResult()
        if description is None:
            result.add_error('description', ErrorCode.INVALID_DESCRIPTION, "Description is required")
        elif not str(description).strip():
            result.add_error('description', ErrorCode.INVALID_DESCRIPTION, "Description cannot be empty")
        elif len(description) > self.config.max_description_length:
            result.add_error('description', ErrorCode.INVALID_DESCRIPTION,
                             f"Description cannot exceed {self.config.max_description_length} characters")
        return result

    def validate_date(self, value: Any, today: Optional[date] = None) -> ValidationResult:
        result = ValidationResult()
        today = today or date.today()

        if isinstance(value, datetime):
            parsed = value.date()
        elif isinstance(value, date):
            parsed = value
        else:
            try:
                parsed = datetime.fromisoformat(str(value)).date()
            except (TypeError, ValueError):
                result.add_error('date', ErrorCode.INVALID_DATE, "Invalid date format", value)
                return result

        if parsed > today + timedelta(days=self.config.max_days_in_future):
            result.add_error('date', ErrorCode.FUTURE_DATE,
                             f"Date cannot be more than {self.config.max_days_in_future} days in the future", value)
        elif parsed < today - timedelta(days=self.config.max_days_in_past):
            result.add_error('date', ErrorCode.PAST_DATE_TOO_OLD,
                             f"Date cannot be more than {self.config.max_days_in_past} days in the past", value)
        return result

    def validate_tags(self, tags: Optional[Iterable[str]]) -> ValidationResult:
        result = ValidationResult()
        if not tags:
            result.add_warning('tags', WarningCode.MISSING_TAGS,
                               "Consider adding tags to better categorize this expense")
            return result
        if isinstance(tags, str):
            result.add_error('tags', ErrorCode.INVALID_TAGS, "Tags must be a list", tags)
            return result

        tags = list(tags)
        if len(tags) > self.config.max_tags:
            result.add_error('tags', ErrorCode.INVALID_TAGS,
                             f"Cannot have more than {self.config.max_tags} tags", tags)

        seen = set()
        for tag in tags:
            text = str(tag).strip()
            if not text:
                result.add_error('tags', ErrorCode.INVALID_TAGS, "Tag cannot be empty", tag)
                continue
            if len(text) > self.config.max_tag_length:
                result.add_error('tags', ErrorCode.INVALID_TAGS,
                                 f"Tag cannot exceed {self.config.max_tag_length} characters", tag)
            if text.lower() in seen:
                result.add_error('tags', ErrorCode.INVALID_TAGS, "Duplicate tags are not allowed", tag)
            seen.add(text.lower())
        return result

    def validate_location(self, location: Optional[str]) -> ValidationResult:
        result = ValidationResult()
        if not location:
            result.add_warning('location', WarningCode.MISSING_LOCATION,
                               "Consider adding location information for better tracking")
        elif len(location) > self.config.max_location_length:
            result.add_error('location', ErrorCode.INVALID_LOCATION,
                             f"Location cannot exceed {self.config.max_location_length} characters", location)
        return result

    def validate_receipt_url(self, receipt_url: Optional[str]) -> ValidationResult:
        result = ValidationResult()
        if receipt_url is None:
            result.add_warning('receipt_url', WarningCode.MISSING_RECEIPT,
                               "Consider adding a receipt for better expense tracking")
            return result
        if len(receipt_url) > self.config.max_receipt_url_length:
            result.add_error('receipt_url', ErrorCode.INVALID_RECEIPT_URL,
                             f"Receipt URL cannot exceed {self.config.max_receipt_url_length} characters")
            return result

        parsed = urlparse(receipt_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            result.add_error('receipt_url', ErrorCode.INVALID_RECEIPT_URL, "Invalid URL format", receipt_url)
        return result

    def validate_recurring_interval(self, is_recurring: Optional[bool],
                                    interval: Optional[str]) -> ValidationResult:
        result = ValidationResult()
        if is_recurring and not interval:
            result.add_error('recurring_interval', ErrorCode.INVALID_RECURRING_INTERVAL,
                             "Recurring interval is required when expense is recurring")
        elif interval and not is_recurring:
            result.add_error('recurring_interval', ErrorCode.INVALID_RECURRING_INTERVAL,
                             "Recurring interval should not be set for non-recurring expenses", interval)
        elif interval and interval.lower() not in RECURRING_INTERVALS:
            result.add_error('recurring_interval', ErrorCode.INVALID_RECURRING_INTERVAL,
                             f"Invalid recurring interval. Valid intervals: {', '.join(RECURRING_INTERVALS)}",
                             interval)
        return result

    def validate_expense(self, data: Dict[str, Any], today: Optional[date] = None) -> ValidationResult:
        """Run every field check over a dict of expense fields"""
        currency = data.get('currency') or ''
        result = ValidationResult()
        result.merge(self.validate_amount(data.get('amount'), currency))
        result.merge(self.validate_currency(data.get('currency')))
        result.merge(self.validate_category(data.get('category')))
        result.merge(self.validate_description(data.get('description')))
        result.merge(self.validate_date(data.get('date'), today=today))
        result.merge(self.validate_tags(data.get('tags')))
        result.merge(self.validate_location(data.get('location')))
        result.merge(self.validate_receipt_url(data.get('receipt_url')))
        result.merge(self.validate_recurring_interval(data.get('is_recurring'), data.get('recurring_interval')))
        return result

    def check_duplicate(self, data: Dict[str, Any], existing: Iterable[Dict[str, Any]]) -> ValidationResult:
        """Warn when an expense with the same amount, category and date exists"""
        result = ValidationResult()
        try:
            amount = Decimal(str(data.get('amount')))
        except ArithmeticError:
            return result
        category = _coerce_category(data.get('category'))
        day = str(data.get('date'))[:10]

        for other in existing:
            try:
                other_amount = Decimal(str(other.get('amount')))
            except ArithmeticError:
                continue
            if (other_amount == amount
                    and _coerce_category(other.get('category')) == category
                    and str(other.get('date'))[:10] == day):
                result.add_warning('amount', WarningCode.POTENTIAL_DUPLICATE,
                                   "A similar expense already exists for this date", data.get('amount'))
                break
        return result


expense_validator = ExpenseValidator()
