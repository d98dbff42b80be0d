"""
Fee Calculator — ISF + LSF Shipping Fee Engine

Вычисляет две независимо значимые составляющие стоимости доставки:
- ISF (International Service Fee): Korea → Manila, функция веса и объёма
- LSF (Local Service Fee): Manila → клиент, со скидкой для shared коробки

ФОРМУЛЫ:
    isf        = round_half_up(volume * isf_per_cbm + weight * isf_per_kg)
    lsf_base   = volume * lsf_per_cbm + weight * lsf_per_kg
    lsf_solo   = round_half_up(lsf_base)
    lsf_shared = round_half_up(lsf_base * shared_multiplier)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все ставки приходят из FeeRates (injected), литералов в формулах нет
2. Каждая составляющая округляется один раз, в точке расчёта;
   total = сумма уже округлённых составляющих (без повторного округления)
3. ISF не зависит от типа коробки
4. shared total <= solo total для любых неотрицательных входов
5. Чистые функции: одинаковые входы → одинаковый результат
"""

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from typing import Final

from hanbuy.core.domain.quote import (
    BoxType,
    FeeBreakdown,
    FreightEstimate,
    ShippingMethod,
    ShippingQuote,
)
from hanbuy.core.errors import InvalidArgument
from hanbuy.core.math.numerical_safeguards import (
    round_half_up,
    validate_in_range,
    validate_non_negative,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Минимальный тарифицируемый объём для оценки перевозки (CBM)
MIN_FREIGHT_VOLUME_CBM: Final[float] = 0.1


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class FeeRates:
    """
    Ставки расчёта стоимости доставки (PHP).

    Defaults соответствуют текущему прайсу; для изменения ставок
    передаётся новый экземпляр (см. hanbuy.settings), код не меняется.
    """

    # ISF (Korea → Manila)
    isf_per_cbm: float = 6000.0
    isf_per_kg: float = 80.0

    # LSF (Manila → клиент)
    lsf_per_cbm: float = 2000.0
    lsf_per_kg: float = 20.0

    # Скидка за разделение коробки: shared LSF = 40% от solo LSF
    shared_multiplier: float = 0.4

    # Надбавки quote
    fuel_surcharge_rate: float = 0.0  # Доля от ISF
    customs_fee: float = 0.0  # Фиксированный сбор, PHP
    insurance_rate: float = 0.0  # Доля от объявленной стоимости (PHP)

    # Quote
    quote_validity_days: int = 7
    default_shipping_method: ShippingMethod = ShippingMethod.SEA

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name == "default_shipping_method":
                continue
            validate_non_negative(getattr(self, f.name), f.name)

        validate_in_range(self.shared_multiplier, "shared_multiplier", 0.0, 1.0)

        try:
            ShippingMethod(self.default_shipping_method)
        except ValueError as e:
            raise InvalidArgument(
                f"Unknown default_shipping_method: {self.default_shipping_method!r}"
            ) from e


@dataclass(frozen=True)
class FreightRate:
    """Тариф международной перевозки для одного способа доставки."""

    per_cbm: float
    per_kg: float
    estimated_days: int


DEFAULT_FREIGHT_RATES: Final[dict[ShippingMethod, FreightRate]] = {
    ShippingMethod.SEA: FreightRate(per_cbm=5000.0, per_kg=50.0, estimated_days=14),
    ShippingMethod.AIR: FreightRate(per_cbm=15000.0, per_kg=200.0, estimated_days=5),
    ShippingMethod.EXPRESS: FreightRate(per_cbm=25000.0, per_kg=400.0, estimated_days=3),
}


# =============================================================================
# HELPERS
# =============================================================================


def _coerce_box_type(box_type: BoxType | str) -> BoxType:
    try:
        return BoxType(box_type)
    except ValueError as e:
        raise InvalidArgument(f"Unknown box type: {box_type!r}") from e


def _coerce_shipping_method(method: ShippingMethod | str) -> ShippingMethod:
    try:
        return ShippingMethod(method)
    except ValueError as e:
        raise InvalidArgument(f"Unknown shipping method: {method!r}") from e


def _validate_physical(weight: float, volume: float) -> None:
    validate_non_negative(weight, "weight")
    validate_non_negative(volume, "volume")


def cbm_from_dimensions(
    length_cm: float,
    width_cm: float,
    height_cm: float,
    quantity: int = 1,
) -> float:
    """
    Объём в CBM по габаритам в сантиметрах.

    cbm = length * width * height * quantity / 1_000_000

    Raises:
        InvalidArgument: Если любой габарит отрицательный или quantity < 1
    """
    validate_non_negative(length_cm, "length_cm")
    validate_non_negative(width_cm, "width_cm")
    validate_non_negative(height_cm, "height_cm")
    if quantity < 1:
        raise InvalidArgument(f"quantity must be >= 1, got {quantity}")

    return length_cm * width_cm * height_cm * quantity / 1_000_000.0


# =============================================================================
# CALCULATOR
# =============================================================================


class ShippingFeeCalculator:
    """
    Калькулятор стоимости доставки Korea → Philippines.

    Stateless: хранит только неизменяемые ставки.
    Принимает только физические атрибуты (кг, CBM), не цену товара.
    """

    def __init__(
        self,
        rates: FeeRates | None = None,
        freight_rates: dict[ShippingMethod, FreightRate] | None = None,
    ):
        """
        Args:
            rates: ставки ISF/LSF и надбавок (default FeeRates())
            freight_rates: тарифы перевозки по способам доставки
        """
        self.rates = rates or FeeRates()
        self.freight_rates = dict(freight_rates or DEFAULT_FREIGHT_RATES)

        missing = set(ShippingMethod) - set(self.freight_rates)
        if missing:
            raise InvalidArgument(
                f"freight_rates missing methods: {sorted(m.value for m in missing)}"
            )

    # -------------------------------------------------------------------------
    # ISF / LSF
    # -------------------------------------------------------------------------

    def calculate_isf(self, weight: float, volume: float) -> int:
        """
        International Service Fee (Korea → Manila).

        Args:
            weight: Вес (кг), >= 0
            volume: Объём (CBM), >= 0

        Returns:
            ISF в целых PHP

        Raises:
            InvalidArgument: Если вес или объём отрицательные
        """
        _validate_physical(weight, volume)
        return round_half_up(volume * self.rates.isf_per_cbm + weight * self.rates.isf_per_kg)

    def calculate_lsf(self, box_type: BoxType | str, weight: float, volume: float) -> int:
        """
        Local Service Fee (Manila → клиент).

        Shared коробка платит shared_multiplier от базового LSF.
        Множитель применяется к неокруглённой базе, округление одно.

        Args:
            box_type: solo / shared
            weight: Вес (кг), >= 0
            volume: Объём (CBM), >= 0

        Returns:
            LSF в целых PHP
        """
        box_type = _coerce_box_type(box_type)
        _validate_physical(weight, volume)

        base = volume * self.rates.lsf_per_cbm + weight * self.rates.lsf_per_kg
        if box_type == BoxType.SHARED:
            return round_half_up(base * self.rates.shared_multiplier)
        return round_half_up(base)

    def calculate_shipping_fee(
        self, box_type: BoxType | str, weight: float, volume: float
    ) -> FeeBreakdown:
        """
        Полная разбивка стоимости: выбранный вариант + solo/shared для сравнения.

        Returns:
            FeeBreakdown (savings = solo_total - shared_total)
        """
        box_type = _coerce_box_type(box_type)

        isf = self.calculate_isf(weight, volume)
        solo_lsf = self.calculate_lsf(BoxType.SOLO, weight, volume)
        shared_lsf = self.calculate_lsf(BoxType.SHARED, weight, volume)
        selected_lsf = solo_lsf if box_type == BoxType.SOLO else shared_lsf

        logger.debug(
            "Fee breakdown: box_type=%s weight=%.3f volume=%.4f isf=%d solo_lsf=%d shared_lsf=%d",
            box_type.value, weight, volume, isf, solo_lsf, shared_lsf,
        )

        return FeeBreakdown(
            box_type=box_type,
            isf=isf,
            lsf=selected_lsf,
            total=isf + selected_lsf,
            solo_isf=isf,
            solo_lsf=solo_lsf,
            solo_total=isf + solo_lsf,
            shared_isf=isf,
            shared_lsf=shared_lsf,
            shared_total=isf + shared_lsf,
        )

    # -------------------------------------------------------------------------
    # QUOTE
    # -------------------------------------------------------------------------

    def calculate_surcharges(
        self, isf: int, weight: float, volume: float, declared_value_php: float = 0.0
    ) -> tuple[int, int, int]:
        """
        Надбавки quote: (fuel_surcharge, customs_fee, insurance_fee).

        Каждая надбавка округляется отдельно. Таможенный сбор
        не начисляется на пустую отправку.

        Args:
            isf: Уже округлённый ISF
            weight: Вес (кг)
            volume: Объём (CBM)
            declared_value_php: Объявленная стоимость в PHP
                (KRW-цены предварительно конвертируются через currency)
        """
        validate_non_negative(declared_value_php, "declared_value_php")

        fuel = round_half_up(isf * self.rates.fuel_surcharge_rate)
        customs = round_half_up(self.rates.customs_fee) if (weight > 0 or volume > 0) else 0
        insurance = round_half_up(declared_value_php * self.rates.insurance_rate)
        return fuel, customs, insurance

    def build_quote(
        self,
        box_type: BoxType | str,
        weight: float,
        volume: float,
        issued_at: datetime,
        *,
        box_id: str | None = None,
        shipping_method: ShippingMethod | str | None = None,
        declared_value_php: float = 0.0,
        storage_penalty: int = 0,
    ) -> ShippingQuote:
        """
        Формирование ShippingQuote с окном валидности.

        Args:
            box_type: solo / shared
            weight: Вес (кг)
            volume: Объём (CBM)
            issued_at: Время выпуска (передаётся вызывающим кодом)
            box_id: Коробка, для которой выпущен quote
            shipping_method: Способ доставки (default из FeeRates)
            declared_value_php: Объявленная стоимость для страховки, PHP
            storage_penalty: Начисленный штраф за хранение, PHP

        Returns:
            ShippingQuote (total_cost = isf + lsf + надбавки)
        """
        validate_non_negative(storage_penalty, "storage_penalty")
        method = _coerce_shipping_method(shipping_method or self.rates.default_shipping_method)

        breakdown = self.calculate_shipping_fee(box_type, weight, volume)
        fuel, customs, insurance = self.calculate_surcharges(
            breakdown.isf, weight, volume, declared_value_php
        )
        penalty = int(storage_penalty)

        return ShippingQuote(
            box_id=box_id,
            box_type=breakdown.box_type,
            shipping_method=method,
            estimated_days=self.freight_rates[method].estimated_days,
            weight_kg=weight,
            volume_cbm=volume,
            isf=breakdown.isf,
            lsf=breakdown.lsf,
            fuel_surcharge=fuel,
            customs_fee=customs,
            insurance_fee=insurance,
            storage_penalty=penalty,
            total_cost=breakdown.total + fuel + customs + insurance + penalty,
            issued_at=issued_at,
            valid_until=issued_at + timedelta(days=self.rates.quote_validity_days),
        )

    # -------------------------------------------------------------------------
    # FREIGHT ESTIMATES
    # -------------------------------------------------------------------------

    def estimate_freight(
        self, weight: float, volume: float, method: ShippingMethod | str
    ) -> FreightEstimate:
        """
        Оценка стоимости международной перевозки для способа доставки.

        Объём ниже MIN_FREIGHT_VOLUME_CBM тарифицируется как минимум.
        """
        _validate_physical(weight, volume)
        method = _coerce_shipping_method(method)
        rate = self.freight_rates[method]

        billable_volume = max(volume, MIN_FREIGHT_VOLUME_CBM)
        return FreightEstimate(
            shipping_method=method,
            weight_kg=weight,
            billable_volume_cbm=billable_volume,
            cost=round_half_up(billable_volume * rate.per_cbm + weight * rate.per_kg),
            estimated_days=rate.estimated_days,
        )

    def estimate_freight_options(
        self, weight: float, volume: float
    ) -> dict[ShippingMethod, FreightEstimate]:
        """Оценки по всем способам доставки (sea / air / express)."""
        return {method: self.estimate_freight(weight, volume, method) for method in ShippingMethod}


# =============================================================================
# CONVENIENCE FUNCTIONS (default rates)
# =============================================================================

_DEFAULT_CALCULATOR = ShippingFeeCalculator()


def calculate_isf(weight: float, volume: float) -> int:
    """ISF по ставкам по умолчанию."""
    return _DEFAULT_CALCULATOR.calculate_isf(weight, volume)


def calculate_lsf(box_type: BoxType | str, weight: float, volume: float) -> int:
    """LSF по ставкам по умолчанию."""
    return _DEFAULT_CALCULATOR.calculate_lsf(box_type, weight, volume)


def calculate_shipping_fee(box_type: BoxType | str, weight: float, volume: float) -> FeeBreakdown:
    """Полная разбивка ISF + LSF по ставкам по умолчанию."""
    return _DEFAULT_CALCULATOR.calculate_shipping_fee(box_type, weight, volume)
