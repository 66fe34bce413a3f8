"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Formatting and comparison of monetary amounts in the two currencies receipts may be issued in.
Amounts are Decimal-compatible; floats are converted through their string representation.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from django.core.exceptions import ValidationError

CURRENCY_UGX = 'UGX'
CURRENCY_USD = 'USD'

CURRENCY_CHOICES = [
    (CURRENCY_UGX, 'Ugandan Shilling'),
    (CURRENCY_USD, 'US Dollar'),
]

VALID_CURRENCIES = tuple(c[0] for c in CURRENCY_CHOICES)

CURRENCY_DECIMAL_PLACES = {
    CURRENCY_UGX: 0,
    CURRENCY_USD: 2,
}

CURRENCY_SYMBOLS = {
    CURRENCY_USD: '$',
}

MoneyLike = Union[Decimal, int, float, str]


def validate_currency(currency: str) -> str:
    if currency not in VALID_CURRENCIES:
        raise ValidationError(f'Currency {currency} is not supported. Choices are {VALID_CURRENCIES}.')
    return currency


def to_decimal(amount: MoneyLike) -> Decimal:
    if isinstance(amount, bool):
        raise ValidationError(f'{amount} is not a valid amount.')
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(amount)
    except (ArithmeticError, TypeError, ValueError):
        raise ValidationError(f'{amount} is not a valid amount.')
    if not value.is_finite():
        raise ValidationError(f'{amount} is not a valid amount.')
    return value


def quantize_money(amount: MoneyLike, currency: str) -> Decimal:
    """
    Rounds an amount to the precision of its currency (half up).

    Parameters
    ----------
    amount: Decimal or int or float or str
        The amount to round.
    currency: str
        One of the supported currency codes.

    Returns
    -------
    Decimal
        The rounded amount.
    """
    validate_currency(currency)
    places = CURRENCY_DECIMAL_PLACES[currency]
    exp = Decimal(1).scaleb(-places)
    return to_decimal(amount).quantize(exp, rounding=ROUND_HALF_UP)


def compare_money(a: MoneyLike, b: MoneyLike, currency: str) -> int:
    """
    Compares two amounts at the precision of the given currency.

    Returns
    -------
    int
        -1 if a < b, 0 if both amounts are equal, 1 if a > b.
    """
    qa = quantize_money(a, currency)
    qb = quantize_money(b, currency)
    if qa < qb:
        return -1
    if qa > qb:
        return 1
    return 0


def money_equal(a: MoneyLike, b: MoneyLike, currency: str) -> bool:
    return compare_money(a, b, currency) == 0


def format_currency(amount: MoneyLike, currency: str = CURRENCY_UGX) -> str:
    """
    Renders an amount for display. UGX amounts are rendered with the currency code as prefix and no decimals
    (``UGX 1,000,000``). USD amounts are rendered with the dollar symbol and two decimals (``$1,234.50``).
    Negative amounts carry the sign before the currency marker.
    """
    value = quantize_money(amount, currency)
    places = CURRENCY_DECIMAL_PLACES[currency]
    sign = '-' if value < 0 else ''
    number = f'{abs(value):,.{places}f}'
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol:
        return f'{sign}{symbol}{number}'
    return f'{sign}{currency} {number}'
