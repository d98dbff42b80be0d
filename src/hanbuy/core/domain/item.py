"""
ConsolidatedItem — Модель товара, принятого в коробку

Immutable Pydantic модель. Изменение записанного товара возможно
только явной заменой (correction by replacement) через lifecycle.
"""

from datetime import datetime
from typing import Final

from pydantic import BaseModel, Field

# Перевод см³ → м³ (CBM)
CM3_PER_CBM: Final[float] = 1_000_000.0


class Dimensions(BaseModel):
    """Габариты товара в сантиметрах."""

    length_cm: float = Field(..., ge=0, description="Длина (см)")
    width_cm: float = Field(..., ge=0, description="Ширина (см)")
    height_cm: float = Field(..., ge=0, description="Высота (см)")

    model_config = {"frozen": True}

    @property
    def cbm(self) -> float:
        """Объём в кубических метрах (CBM)."""
        return self.length_cm * self.width_cm * self.height_cm / CM3_PER_CBM


class ConsolidatedItem(BaseModel):
    """
    Товар, физически принятый на склад в Корее и добавленный в коробку.

    Объём берётся из явного volume_cbm (если передан ingestion-механизмом),
    иначе вычисляется из габаритов, иначе считается нулевым.
    """

    # Идентификация
    item_id: str = Field(..., min_length=1, description="Идентификатор товара")
    name: str | None = Field(None, description="Название товара")
    tracking_number: str | None = Field(None, description="Трек-номер курьера (Korea)")

    # Время
    received_at: datetime = Field(..., description="Время приёмки на склад")

    # Физические параметры
    weight_kg: float = Field(..., ge=0, description="Вес (кг)")
    dimensions: Dimensions | None = Field(None, description="Габариты (см)")
    volume_cbm: float | None = Field(None, ge=0, description="Явный объём (CBM)")

    model_config = {"frozen": True}

    @property
    def volume(self) -> float:
        """Эффективный объём товара (CBM)."""
        if self.volume_cbm is not None:
            return self.volume_cbm
        if self.dimensions is not None:
            return self.dimensions.cbm
        return 0.0
