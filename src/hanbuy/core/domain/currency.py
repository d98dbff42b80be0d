"""
Currency — Централизованный модуль конверсии KRW ↔ PHP

Единственный допустимый способ преобразований между:
- KRW (корейская вона, без subunit — целые воны)
- PHP (филиппинское песо, 2 знака после запятой)

Курс всегда передаётся явно (injected). Модуль никогда не получает курс сам:
источник курса — ответственность внешнего кода.

ЗАПРЕЩЕНО сравнивать KRW-цены с PHP-стоимостью без конверсии через этот модуль.
Формулы ISF/LSF принимают только физические атрибуты (вес, объём), не цену.
"""

from enum import Enum
from typing import Final

from hanbuy.core.math.numerical_safeguards import (
    round_half_up,
    round_to_places,
    validate_non_negative,
    validate_positive,
)


# =============================================================================
# ENUMS
# =============================================================================


class Currency(str, Enum):
    """Валюта"""

    PHP = "PHP"
    KRW = "KRW"


# Количество знаков после запятой для отображения и округления
CURRENCY_DECIMALS: Final[dict[Currency, int]] = {
    Currency.PHP: 2,
    Currency.KRW: 0,
}

CURRENCY_SYMBOLS: Final[dict[Currency, str]] = {
    Currency.PHP: "₱",
    Currency.KRW: "₩",
}


# =============================================================================
# БАЗОВЫЕ КОНВЕРТЕРЫ
# =============================================================================


def convert_krw_to_php(amount_krw: float, rate: float) -> float:
    """
    Конверсия: KRW → PHP

    php = round2(amount_krw * rate)

    Args:
        amount_krw: Сумма в вонах (неотрицательная)
        rate: Курс PHP за 1 KRW (например, 0.042)

    Returns:
        Сумма в песо, округлённая до 2 знаков (round half up)

    Raises:
        InvalidArgument: Если сумма отрицательная или курс не положительный
    """
    validate_non_negative(amount_krw, "amount_krw")
    validate_positive(rate, "rate")

    return round_to_places(amount_krw * rate, CURRENCY_DECIMALS[Currency.PHP])


def convert_php_to_krw(amount_php: float, rate: float) -> int:
    """
    Конверсия: PHP → KRW

    krw = round0(amount_php * rate)

    Args:
        amount_php: Сумма в песо (неотрицательная)
        rate: Курс KRW за 1 PHP (например, 23.81)

    Returns:
        Сумма в целых вонах

    Raises:
        InvalidArgument: Если сумма отрицательная или курс не положительный
    """
    validate_non_negative(amount_php, "amount_php")
    validate_positive(rate, "rate")

    return round_half_up(amount_php * rate)


# =============================================================================
# ОТОБРАЖЕНИЕ
# =============================================================================


def currency_symbol(currency: Currency) -> str:
    """Символ валюты (₱ / ₩)."""
    return CURRENCY_SYMBOLS[Currency(currency)]


def format_currency(amount: float, currency: Currency = Currency.PHP) -> str:
    """
    Форматирование суммы для отображения.

    Examples:
        >>> format_currency(1300)
        '₱1,300.00'
        >>> format_currency(25000, Currency.KRW)
        '₩25,000'
        >>> format_currency(-50.5)
        '-₱50.50'
    """
    currency = Currency(currency)
    decimals = CURRENCY_DECIMALS[currency]

    if decimals == 0:
        rounded: float = round_half_up(abs(amount))
    else:
        rounded = round_to_places(abs(amount), decimals)

    sign = "-" if amount < 0 and rounded != 0 else ""
    return f"{sign}{currency_symbol(currency)}{rounded:,.{decimals}f}"
