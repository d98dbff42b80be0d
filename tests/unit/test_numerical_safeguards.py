"""
Тесты для Numerical Safeguards

Проверяет:
1. Округление round half up (в отличие от banker's rounding встроенного round)
2. Отсутствие артефактов двоичного float при округлении
3. Ceiling по суткам для штрафных дней
4. Валидацию входов → InvalidArgument
"""

from datetime import timedelta

import pytest

from hanbuy.core.errors import InvalidArgument
from hanbuy.core.math import (
    ceil_days,
    is_close,
    is_valid_float,
    is_zero,
    round_half_up,
    round_to_places,
    validate_in_range,
    validate_non_negative,
    validate_positive,
)


class TestRoundHalfUp:
    """Тесты round_half_up"""

    def test_half_rounds_up(self) -> None:
        """0.5 → 1, 2.5 → 3 (встроенный round дал бы 0 и 2)"""
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(119.5) == 120

    def test_below_half_rounds_down(self) -> None:
        assert round_half_up(2.49) == 2
        assert round_half_up(0.0) == 0

    def test_float_artifacts_ignored(self) -> None:
        """0.1 * 6000 = 600.0000000000001 не сдвигает результат"""
        assert round_half_up(0.1 * 6000) == 600
        assert round_half_up(300 * 0.4) == 120

    def test_returns_int(self) -> None:
        assert isinstance(round_half_up(12.7), int)

    def test_non_finite_rejected(self) -> None:
        with pytest.raises(InvalidArgument, match="non-finite"):
            round_half_up(float("nan"))
        with pytest.raises(InvalidArgument):
            round_half_up(float("inf"))


class TestRoundToPlaces:
    """Тесты round_to_places"""

    def test_two_places_half_up(self) -> None:
        assert round_to_places(1.005, 2) == pytest.approx(1.01)
        assert round_to_places(2.675, 2) == pytest.approx(2.68)

    def test_zero_places(self) -> None:
        assert round_to_places(10.5, 0) == 11.0

    def test_negative_places_rejected(self) -> None:
        with pytest.raises(InvalidArgument):
            round_to_places(1.0, -1)


class TestCeilDays:
    """Тесты ceil_days: неполные сутки считаются полными"""

    def test_one_second_is_one_day(self) -> None:
        assert ceil_days(timedelta(seconds=1)) == 1

    def test_exact_days(self) -> None:
        assert ceil_days(timedelta(days=2)) == 2

    def test_partial_day_rounds_up(self) -> None:
        assert ceil_days(timedelta(days=2, seconds=1)) == 3
        assert ceil_days(timedelta(hours=23, minutes=59)) == 1

    def test_zero_and_negative(self) -> None:
        assert ceil_days(timedelta(0)) == 0
        assert ceil_days(timedelta(days=-3)) == 0


class TestComparisons:
    """Тесты epsilon-сравнений"""

    def test_is_close(self) -> None:
        assert is_close(1.0, 1.0 + 1e-12)
        assert not is_close(1.0, 1.1)

    def test_is_zero(self) -> None:
        assert is_zero(1e-13)
        assert not is_zero(1e-6)

    def test_is_valid_float(self) -> None:
        assert is_valid_float(1.5)
        assert not is_valid_float(float("nan"))
        assert not is_valid_float(float("-inf"))


class TestValidation:
    """Тесты валидаторов"""

    def test_non_negative_accepts_zero(self) -> None:
        validate_non_negative(0.0, "weight")

    def test_non_negative_rejects_negative(self) -> None:
        with pytest.raises(InvalidArgument, match="weight must be non-negative"):
            validate_non_negative(-0.1, "weight")

    def test_non_negative_rejects_nan(self) -> None:
        with pytest.raises(InvalidArgument, match="valid float"):
            validate_non_negative(float("nan"), "volume")

    def test_positive_rejects_zero(self) -> None:
        with pytest.raises(InvalidArgument, match="rate must be positive"):
            validate_positive(0.0, "rate")

    def test_in_range(self) -> None:
        validate_in_range(0.4, "shared_multiplier", 0.0, 1.0)
        with pytest.raises(InvalidArgument, match="<= 1.0"):
            validate_in_range(1.2, "shared_multiplier", 0.0, 1.0)

    def test_invalid_argument_is_value_error(self) -> None:
        """InvalidArgument остаётся ValueError для существующих обработчиков"""
        with pytest.raises(ValueError):
            validate_non_negative(-1.0, "weight")
