"""
Конфигурация движка консолидации

Ставки и параметры читаются из переменных окружения (префикс HANBUY_)
или .env файла и превращаются в неизменяемые конфиги движка.
Движок получает только FeeRates / LifecycleConfig явно (injection),
глобальное состояние не читается.

Пример:
    HANBUY_SHARED_MULTIPLIER=0.35
    HANBUY_FREE_PERIOD_DAYS=45
    HANBUY_LOG_FORMAT=json
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hanbuy.consolidation.lifecycle import LifecycleConfig
from hanbuy.core.domain.quote import ShippingMethod
from hanbuy.fees.calculator import FeeRates


class Settings(BaseSettings):
    """Настройки ставок, lifecycle и логирования."""

    model_config = SettingsConfigDict(
        env_prefix="HANBUY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ISF / LSF
    isf_per_cbm: float = Field(default=6000.0, ge=0, description="ISF за CBM, PHP")
    isf_per_kg: float = Field(default=80.0, ge=0, description="ISF за кг, PHP")
    lsf_per_cbm: float = Field(default=2000.0, ge=0, description="LSF за CBM, PHP")
    lsf_per_kg: float = Field(default=20.0, ge=0, description="LSF за кг, PHP")
    shared_multiplier: float = Field(
        default=0.4, ge=0, le=1, description="Доля solo LSF, которую платит shared коробка"
    )

    # Надбавки quote
    fuel_surcharge_rate: float = Field(default=0.0, ge=0, description="Топливная надбавка, доля ISF")
    customs_fee: float = Field(default=0.0, ge=0, description="Таможенный сбор, PHP")
    insurance_rate: float = Field(default=0.0, ge=0, description="Страховка, доля объявленной стоимости")
    quote_validity_days: int = Field(default=7, ge=0, description="Срок действия quote (дни)")
    default_shipping_method: ShippingMethod = Field(default=ShippingMethod.SEA)

    # Lifecycle
    free_period_days: int = Field(default=60, ge=0, description="Бесплатное хранение (дни)")
    daily_penalty: int = Field(default=50, ge=0, description="Штраф за сутки, PHP")
    penalty_reminder_lead_days: int = Field(default=7, ge=0)

    # Logging
    log_level: str = Field(default="INFO", description="Уровень логирования")
    log_format: Literal["text", "json"] = Field(default="text")

    def fee_rates(self) -> FeeRates:
        """Неизменяемые ставки для ShippingFeeCalculator."""
        return FeeRates(
            isf_per_cbm=self.isf_per_cbm,
            isf_per_kg=self.isf_per_kg,
            lsf_per_cbm=self.lsf_per_cbm,
            lsf_per_kg=self.lsf_per_kg,
            shared_multiplier=self.shared_multiplier,
            fuel_surcharge_rate=self.fuel_surcharge_rate,
            customs_fee=self.customs_fee,
            insurance_rate=self.insurance_rate,
            quote_validity_days=self.quote_validity_days,
            default_shipping_method=self.default_shipping_method,
        )

    def lifecycle_config(self) -> LifecycleConfig:
        """Неизменяемая конфигурация ConsolidationLifecycle."""
        return LifecycleConfig(
            free_period_days=self.free_period_days,
            daily_penalty=self.daily_penalty,
            penalty_reminder_lead_days=self.penalty_reminder_lead_days,
        )


@lru_cache
def get_settings() -> Settings:
    """Кэшированный экземпляр настроек."""
    return Settings()
