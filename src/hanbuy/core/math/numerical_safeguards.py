"""
Numerical Safeguards — Rounding & Validation Primitives

Модуль обеспечивает детерминированную денежную арифметику движка:
- Округление round-half-up (через Decimal, без артефактов двоичного float)
- Ceiling по дням для штрафов (partial day = full day)
- Epsilon-сравнения float
- Валидация физических входов (вес, объём) и ставок

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Каждая денежная величина округляется ровно один раз, в точке её расчёта
2. NaN/Inf никогда не проходят валидацию
3. Отрицательный физический вход → InvalidArgument
4. Все операции детерминированы и воспроизводимы
"""

import math
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from hanbuy.core.errors import InvalidArgument

# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Epsilon для сравнения float (относительная толерантность)
EPS_FLOAT_COMPARE_REL: Final[float] = 1e-9

# Epsilon для сравнения float (абсолютная толерантность)
EPS_FLOAT_COMPARE_ABS: Final[float] = 1e-12

# Длительность суток для ceiling-расчёта штрафных дней
ONE_DAY: Final[timedelta] = timedelta(days=1)


# =============================================================================
# NaN/Inf ПРОВЕРКИ
# =============================================================================


def is_valid_float(value: float) -> bool:
    """
    Проверка, является ли float валидным (не NaN, не Inf).

    Args:
        value: Проверяемое значение

    Returns:
        True если значение валидное (finite), False если NaN или Inf
    """
    return math.isfinite(value)


# =============================================================================
# EPSILON-СРАВНЕНИЯ FLOAT
# =============================================================================


def is_close(
    a: float,
    b: float,
    rel_tol: float = EPS_FLOAT_COMPARE_REL,
    abs_tol: float = EPS_FLOAT_COMPARE_ABS,
) -> bool:
    """
    Сравнение float с учётом машинной точности.

    Алгоритм:
        abs(a - b) <= max(rel_tol * max(abs(a), abs(b)), abs_tol)

    Examples:
        >>> is_close(1.0, 1.0 + 1e-10)
        True
        >>> is_close(1.0, 1.1)
        False
    """
    return math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol)


def is_zero(value: float, tol: float = EPS_FLOAT_COMPARE_ABS) -> bool:
    """Проверка, близко ли значение к нулю с учётом толерантности."""
    return abs(value) <= tol


# =============================================================================
# ОКРУГЛЕНИЕ
# =============================================================================


def _to_decimal(value: float) -> Decimal:
    # repr даёт кратчайшее представление float: 2.675 → Decimal("2.675"), а не 2.67499...
    return Decimal(repr(float(value)))


def round_half_up(value: float) -> int:
    """
    Округление до ближайшего целого по правилу round half up.

    Встроенный round() использует banker's rounding (round(0.5) == 0),
    поэтому для денежных сумм используется Decimal с ROUND_HALF_UP.

    Args:
        value: Исходное значение (finite)

    Returns:
        Целое число (whole currency unit)

    Raises:
        InvalidArgument: Если value NaN/Inf

    Examples:
        >>> round_half_up(0.5)
        1
        >>> round_half_up(2.5)
        3
        >>> round_half_up(1000.0000000000001)
        1000
    """
    if not is_valid_float(value):
        raise InvalidArgument(f"Cannot round non-finite value: {value}")

    return int(_to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_to_places(value: float, places: int) -> float:
    """
    Округление до заданного количества знаков после запятой (round half up).

    Args:
        value: Исходное значение (finite)
        places: Количество знаков после запятой (>= 0)

    Returns:
        Округлённое значение

    Examples:
        >>> round_to_places(1.005, 2)
        1.01
        >>> round_to_places(1050.0, 2)
        1050.0
    """
    if places < 0:
        raise InvalidArgument(f"places must be non-negative, got {places}")
    if not is_valid_float(value):
        raise InvalidArgument(f"Cannot round non-finite value: {value}")

    quantum = Decimal(1).scaleb(-places)
    return float(_to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def ceil_days(delta: timedelta) -> int:
    """
    Количество суток в интервале с округлением вверх.

    Любая неполная часть суток считается полными сутками.
    Целочисленная арифметика timedelta — без float-дрейфа.

    Args:
        delta: Интервал времени

    Returns:
        ceil(delta / 1 day), 0 для нулевого или отрицательного интервала

    Examples:
        >>> ceil_days(timedelta(seconds=1))
        1
        >>> ceil_days(timedelta(days=2, seconds=1))
        3
        >>> ceil_days(timedelta(days=2))
        2
    """
    if delta <= timedelta(0):
        return 0

    days, remainder = divmod(delta, ONE_DAY)
    if remainder:
        days += 1
    return days


# =============================================================================
# ВАЛИДАЦИЯ И ПРОВЕРКИ
# =============================================================================


def validate_non_negative(value: float, name: str) -> None:
    """
    Валидация, что значение неотрицательное.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Raises:
        InvalidArgument: Если value < 0 или NaN/Inf
    """
    if not is_valid_float(value):
        raise InvalidArgument(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative, got {value}")


def validate_positive(value: float, name: str) -> None:
    """
    Валидация, что значение строго положительное.

    Raises:
        InvalidArgument: Если value <= 0 или NaN/Inf
    """
    if not is_valid_float(value):
        raise InvalidArgument(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value <= 0:
        raise InvalidArgument(f"{name} must be positive, got {value}")


def validate_in_range(
    value: float,
    name: str,
    min_value: float | None = None,
    max_value: float | None = None,
) -> None:
    """
    Валидация, что значение в заданном диапазоне.

    Raises:
        InvalidArgument: Если value вне диапазона или NaN/Inf
    """
    if not is_valid_float(value):
        raise InvalidArgument(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if min_value is not None and value < min_value:
        raise InvalidArgument(f"{name} must be >= {min_value}, got {value}")

    if max_value is not None and value > max_value:
        raise InvalidArgument(f"{name} must be <= {max_value}, got {value}")
