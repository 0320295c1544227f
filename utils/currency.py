"""
Currency formatting, parsing and conversion
"""
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Union

import requests

from config.settings import settings
from utils.cache import cached
from utils.logger import logger

Number = Union[int, float, Decimal]


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    symbol: str
    name: str
    decimal_places: int = 2
    symbol_position: str = "before"
    thousands_separator: str = ","
    decimal_separator: str = "."


SUPPORTED_CURRENCIES: Dict[str, CurrencyInfo] = {
    'USD': CurrencyInfo('USD', '$', 'US Dollar'),
    'EUR': CurrencyInfo('EUR', '€', 'Euro', thousands_separator='.', decimal_separator=','),
    'GBP': CurrencyInfo('GBP', '£', 'British Pound'),
    'CAD': CurrencyInfo('CAD', 'C$', 'Canadian Dollar'),
    'AUD': CurrencyInfo('AUD', 'A$', 'Australian Dollar'),
    'JPY': CurrencyInfo('JPY', '¥', 'Japanese Yen', decimal_places=0),
    'CHF': CurrencyInfo('CHF', 'CHF', 'Swiss Franc', thousands_separator="'"),
    'CNY': CurrencyInfo('CNY', '¥', 'Chinese Yuan'),
    'INR': CurrencyInfo('INR', '₹', 'Indian Rupee'),
    'BRL': CurrencyInfo('BRL', 'R$', 'Brazilian Real', thousands_separator='.', decimal_separator=','),
    'ZAR': CurrencyInfo('ZAR', 'R', 'South African Rand', thousands_separator=' '),
}

# (thousands, decimal) separators per locale
LOCALE_SEPARATORS: Dict[str, tuple] = {
    'en-US': (',', '.'),
    'en-GB': (',', '.'),
    'en-IN': (',', '.'),
    'ja-JP': (',', '.'),
    'de-DE': ('.', ','),
    'pt-BR': ('.', ','),
    'fr-FR': (' ', ','),
    'de-CH': ("'", '.'),
    'en-ZA': (' ', ','),
}

SIGN_DISPLAYS = ('auto', 'never', 'always', 'exceptZero')

_COMPACT_UNITS = (
    (Decimal('1e9'), 'B', 'billion'),
    (Decimal('1e6'), 'M', 'million'),
    (Decimal('1e3'), 'K', 'thousand'),
)


def get_currency_info(code: str) -> Optional[CurrencyInfo]:
    if not code:
        return None
    return SUPPORTED_CURRENCIES.get(code.upper())


def is_supported_currency(code: str) -> bool:
    return get_currency_info(code) is not None


def get_supported_currencies() -> List[str]:
    return list(SUPPORTED_CURRENCIES.keys())


def get_currency_symbol(code: str) -> str:
    info = get_currency_info(code)
    return info.symbol if info else (code or '')


def _resolve(code: str) -> CurrencyInfo:
    return get_currency_info(code) or SUPPORTED_CURRENCIES['USD']


def _group(digits: str, separator: str) -> str:
    """Insert separator every three digits from the right"""
    if not separator:
        return digits
    head = len(digits) % 3 or 3
    parts = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
    return separator.join(parts)


def _format_number(value: Decimal, min_digits: int, max_digits: int,
                   thousands: str, decimal_sep: str, grouping: bool = True) -> str:
    """Format the absolute value of a number with the given separators; ties round away from zero"""
    quantum = Decimal(1).scaleb(-max_digits)
    rounded = abs(value).quantize(quantum, rounding=ROUND_HALF_UP)
    text = f"{rounded:f}"
    integer, _, fraction = text.partition('.')
    fraction = fraction.rstrip('0')
    if len(fraction) < min_digits:
        fraction = fraction.ljust(min_digits, '0')
    if grouping:
        integer = _group(integer, thousands)
    return f"{integer}{decimal_sep}{fraction}" if fraction else integer


def _compact(value: Decimal, long_form: bool) -> Optional[str]:
    magnitude = abs(value)
    for threshold, short, word in _COMPACT_UNITS:
        if magnitude >= threshold:
            scaled = (magnitude / threshold).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
            number = f"{scaled:f}".rstrip('0').rstrip('.')
            return f"{number} {word}" if long_form else f"{number}{short}"
    return None


def _apply_sign(body: str, value: Decimal, sign_display: str) -> str:
    if sign_display == 'never':
        return body
    if value < 0:
        return f"-{body}"
    if sign_display == 'always' or (sign_display == 'exceptZero' and value != 0):
        return f"+{body}"
    return body


def format_currency(
    amount: Number,
    currency_code: str = "USD",
    show_symbol: bool = True,
    show_code: bool = False,
    minimum_fraction_digits: Optional[int] = None,
    maximum_fraction_digits: Optional[int] = None,
    compact: bool = False,
    long_compact: bool = False,
    use_grouping: bool = True,
    sign_display: str = "auto",
    symbol: Optional[str] = None,
    separators: Optional[tuple] = None
) -> str:
    """
    Format an amount using the separators and symbol of its currency.

    Unknown currency codes are formatted like USD with the code appended.
    """
    if sign_display not in SIGN_DISPLAYS:
        sign_display = 'auto'

    info = get_currency_info(currency_code)
    unknown = info is None
    info = info or SUPPORTED_CURRENCIES['USD']

    value = Decimal(str(amount))
    thousands, decimal_sep = separators or (info.thousands_separator, info.decimal_separator)

    body = None
    if compact or long_compact:
        body = _compact(value, long_form=long_compact)
        if body and decimal_sep != '.':
            body = body.replace('.', decimal_sep)
    if body is None:
        max_digits = info.decimal_places if maximum_fraction_digits is None else maximum_fraction_digits
        min_digits = info.decimal_places if minimum_fraction_digits is None else minimum_fraction_digits
        min_digits = min(min_digits, max_digits)
        body = _format_number(value, min_digits, max_digits, thousands, decimal_sep, use_grouping)

    if show_symbol:
        mark = symbol if symbol is not None else info.symbol
        body = f"{mark}{body}" if info.symbol_position == 'before' else f"{body}{mark}"

    result = _apply_sign(body, value, sign_display)

    if show_code or (unknown and currency_code):
        result = f"{result} {currency_code.upper()}"
    return result


def format_currency_compact(amount: Number, currency_code: str = "USD") -> str:
    """e.g. $1.5K"""
    return format_currency(amount, currency_code, compact=True)


def format_currency_long_compact(amount: Number, currency_code: str = "USD") -> str:
    """e.g. $1.5 million"""
    return format_currency(amount, currency_code, long_compact=True)


def format_currency_range(min_amount: Number, max_amount: Number, currency_code: str = "USD") -> str:
    return f"{format_currency(min_amount, currency_code)} - {format_currency(max_amount, currency_code)}"


def format_currency_with_precision(amount: Number, currency_code: str = "USD", precision: int = 2) -> str:
    return format_currency(
        amount, currency_code,
        minimum_fraction_digits=precision,
        maximum_fraction_digits=precision
    )


def format_currency_for_table(amount: Number, currency_code: str = "USD") -> str:
    return format_currency(amount, currency_code).rjust(12)


def format_currency_for_input(amount: Number, currency_code: str = "USD") -> str:
    """Plain number for editable fields: no symbol, no grouping, '.' decimal"""
    info = _resolve(currency_code)
    value = Decimal(str(amount))
    body = _format_number(value, info.decimal_places, info.decimal_places, '', '.', grouping=False)
    return f"-{body}" if value < 0 else body


def format_currency_for_locale(amount: Number, currency_code: str, locale: str) -> str:
    return format_currency(amount, currency_code, separators=LOCALE_SEPARATORS.get(locale))


def format_currency_with_custom_symbol(amount: Number, symbol: str, decimal_places: int = 2) -> str:
    value = Decimal(str(amount))
    body = _format_number(value, decimal_places, decimal_places, ',', '.')
    return _apply_sign(f"{symbol}{body}", value, 'auto')


def format_currency_with_sign(amount: Number, currency_code: str = "USD", sign_display: str = "auto") -> str:
    return format_currency(amount, currency_code, sign_display=sign_display)


def format_currency_for_accounting(amount: Number, currency_code: str = "USD") -> str:
    """Negative amounts in parentheses"""
    value = Decimal(str(amount))
    body = format_currency(abs(value), currency_code)
    return f"({body})" if value < 0 else body


def parse_currency(text: Optional[str], currency_code: str = "USD") -> float:
    """Parse a formatted amount back to a number; 0.0 when nothing parses"""
    if not text or not isinstance(text, str):
        return 0.0

    info = _resolve(currency_code)
    cleaned = re.sub(r'[^\d.,\-]', '', text)
    negative = '-' in cleaned
    cleaned = cleaned.replace('-', '')

    cleaned = cleaned.replace(info.thousands_separator, '')
    cleaned = cleaned.replace(info.decimal_separator, '.')

    match = re.match(r'\d*(?:\.\d*)?', cleaned)
    number = match.group(0) if match else ''
    if not number.strip('.'):
        return 0.0

    value = float(number)
    return -value if negative else value


@cached(key_prefix="exchange_rates")
def fetch_exchange_rates(base: str = "USD") -> Optional[Dict[str, float]]:
    """Latest rates relative to base, or None when the service is unavailable"""
    url = f"{settings.api.exchange_rate_url.rstrip('/')}/latest"
    try:
        response = requests.get(url, params={'base': base.upper()}, timeout=settings.api.http_timeout)
        response.raise_for_status()
        rates = response.json().get('rates')
        if not isinstance(rates, dict):
            logger.warning(f"Exchange rate response for {base} has no rates")
            return None
        return {code: float(rate) for code, rate in rates.items()}
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Failed to fetch exchange rates for {base}: {e}")
        return None


def convert_currency(amount: Number, from_currency: str, to_currency: str,
                     rates: Optional[Dict[str, float]]) -> float:
    """Convert with rates quoted against from_currency"""
    if from_currency.upper() == to_currency.upper():
        return float(amount)
    rate = (rates or {}).get(to_currency.upper())
    if rate is None:
        return float(amount)
    return float(amount) * float(rate)
