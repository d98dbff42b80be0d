"""
FeeBreakdown / ShippingQuote — Модели стоимости доставки

Immutable Pydantic модели, производимые Fee Calculator по запросу.
Не являются authoritative state: это производные снапшоты для отображения.

Все денежные поля — целые PHP (whole currency unit, без сентаво).
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field, model_validator

from hanbuy.core.domain.currency import Currency


# =============================================================================
# ENUMS
# =============================================================================


class BoxType(str, Enum):
    """
    Тип коробки (выбор клиента).

    Влияет только на LSF: shared коробка делит локальную доставку
    с другими клиентами или личными вещами владельца.
    """

    SOLO = "solo"
    SHARED = "shared"


class ShippingMethod(str, Enum):
    """Способ международной доставки Korea → Manila"""

    SEA = "sea"
    AIR = "air"
    EXPRESS = "express"


# =============================================================================
# FEE BREAKDOWN
# =============================================================================


class FeeBreakdown(BaseModel):
    """
    Разбивка стоимости доставки: ISF + LSF.

    Помимо выбранного box_type всегда содержит solo и shared варианты,
    чтобы UI мог показать экономию без повторного расчёта.
    """

    box_type: BoxType = Field(..., description="Выбранный тип коробки")

    # Выбранный вариант
    isf: int = Field(..., ge=0, description="International Service Fee (Korea → Manila), PHP")
    lsf: int = Field(..., ge=0, description="Local Service Fee (Manila → клиент), PHP")
    total: int = Field(..., ge=0, description="ISF + LSF, PHP")

    # Solo вариант
    solo_isf: int = Field(..., ge=0)
    solo_lsf: int = Field(..., ge=0)
    solo_total: int = Field(..., ge=0)

    # Shared вариант
    shared_isf: int = Field(..., ge=0)
    shared_lsf: int = Field(..., ge=0)
    shared_total: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_totals(self) -> "FeeBreakdown":
        """Total всегда сверяется с суммой уже округлённых компонентов."""
        if self.total != self.isf + self.lsf:
            raise ValueError(f"total {self.total} != isf {self.isf} + lsf {self.lsf}")
        if self.solo_total != self.solo_isf + self.solo_lsf:
            raise ValueError("solo_total must equal solo_isf + solo_lsf")
        if self.shared_total != self.shared_isf + self.shared_lsf:
            raise ValueError("shared_total must equal shared_isf + shared_lsf")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def savings(self) -> int:
        """Экономия shared относительно solo (PHP)."""
        return self.solo_total - self.shared_total


# =============================================================================
# SHIPPING QUOTE
# =============================================================================


class ShippingQuote(BaseModel):
    """
    Ценовое предложение: ISF + LSF + надбавки, с окном валидности.

    Формируется при закрытии коробки (финальный quote) или по запросу UI.
    """

    # Контекст
    box_id: str | None = Field(None, description="Коробка, для которой выпущен quote")
    box_type: BoxType = Field(..., description="Тип коробки")
    shipping_method: ShippingMethod = Field(..., description="Способ международной доставки")
    estimated_days: int = Field(..., ge=0, description="Оценка срока доставки (дни)")

    # Физические параметры
    weight_kg: float = Field(..., ge=0, description="Суммарный вес (кг)")
    volume_cbm: float = Field(..., ge=0, description="Суммарный объём (CBM)")

    # Стоимость
    isf: int = Field(..., ge=0, description="International Service Fee, PHP")
    lsf: int = Field(..., ge=0, description="Local Service Fee, PHP")
    fuel_surcharge: int = Field(0, ge=0, description="Топливная надбавка, PHP")
    customs_fee: int = Field(0, ge=0, description="Таможенный сбор, PHP")
    insurance_fee: int = Field(0, ge=0, description="Страховка, PHP")
    storage_penalty: int = Field(0, ge=0, description="Штраф за хранение сверх free period, PHP")
    total_cost: int = Field(..., ge=0, description="Итого, PHP")
    currency: Currency = Field(Currency.PHP, description="Валюта quote (всегда PHP)")

    # Окно валидности
    issued_at: datetime = Field(..., description="Время выпуска quote")
    valid_until: datetime = Field(..., description="Quote действителен до (включительно)")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_quote(self) -> "ShippingQuote":
        """Проверка сверки total и окна валидности."""
        if self.currency != Currency.PHP:
            raise ValueError(f"ShippingQuote must be priced in PHP, got {self.currency}")
        if self.total_cost != self.subtotal + self.surcharges_total:
            raise ValueError(
                f"total_cost {self.total_cost} != subtotal {self.subtotal} "
                f"+ surcharges {self.surcharges_total}"
            )
        if self.valid_until < self.issued_at:
            raise ValueError("valid_until must not precede issued_at")
        return self

    @property
    def subtotal(self) -> int:
        """ISF + LSF."""
        return self.isf + self.lsf

    @property
    def surcharges_total(self) -> int:
        """Сумма всех надбавок (включая штраф за хранение)."""
        return self.fuel_surcharge + self.customs_fee + self.insurance_fee + self.storage_penalty

    def is_valid_at(self, at: datetime) -> bool:
        """Quote действителен в момент `at` (граница включительно)."""
        return self.issued_at <= at <= self.valid_until


# =============================================================================
# FREIGHT ESTIMATE
# =============================================================================


class FreightEstimate(BaseModel):
    """Оценка стоимости международной перевозки для одного способа доставки."""

    shipping_method: ShippingMethod
    weight_kg: float = Field(..., ge=0)
    billable_volume_cbm: float = Field(..., ge=0, description="Объём с учётом минимума")
    cost: int = Field(..., ge=0, description="Стоимость, PHP")
    estimated_days: int = Field(..., ge=0)

    model_config = {"frozen": True}
