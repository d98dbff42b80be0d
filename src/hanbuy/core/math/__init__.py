"""
Core math modules для HanBuy

Детерминированное округление и валидация числовых входов.
"""

from hanbuy.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    ONE_DAY,
    # Rounding
    ceil_days,
    round_half_up,
    round_to_places,
    # Comparisons
    is_close,
    is_valid_float,
    is_zero,
    # Validation
    validate_in_range,
    validate_non_negative,
    validate_positive,
)

__all__ = [
    # Epsilon constants
    "EPS_FLOAT_COMPARE_ABS",
    "EPS_FLOAT_COMPARE_REL",
    "ONE_DAY",
    # Rounding
    "ceil_days",
    "round_half_up",
    "round_to_places",
    # Comparisons
    "is_close",
    "is_valid_float",
    "is_zero",
    # Validation
    "validate_in_range",
    "validate_non_negative",
    "validate_positive",
]
