"""
BoxConsolidation — Агрегат консолидации товаров клиента

Immutable Pydantic модель. Каждая операция lifecycle возвращает новый экземпляр
(model_copy), поэтому отклонённая операция не оставляет частичных изменений.

ИНВАРИАНТЫ:
1. total_weight / total_volume — производные (computed), никогда не хранятся отдельно
2. free_period_end фиксируется при приёмке первого товара и далее не меняется
3. penalty_start_date устанавливается не более одного раза и только после free_period_end
4. current_penalty — производный read от "now", а не накопительный счётчик
5. Статус движется только вперёд: open → closed → shipped → delivered
"""

from datetime import datetime
from enum import Enum
from typing import Final

from pydantic import BaseModel, Field, computed_field, model_validator

from hanbuy.core.domain.item import ConsolidatedItem
from hanbuy.core.domain.quote import BoxType, ShippingQuote
from hanbuy.core.math.numerical_safeguards import ceil_days


# =============================================================================
# ENUMS
# =============================================================================


class BoxStatus(str, Enum):
    """Статус коробки в lifecycle консолидации"""

    OPEN = "open"
    CLOSED = "closed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"

    @property
    def next_status(self) -> "BoxStatus | None":
        """Единственный допустимый следующий статус (None для terminal)."""
        return _NEXT_STATUS[self]

    @property
    def is_terminal(self) -> bool:
        return self.next_status is None

    def can_transition_to(self, target: "BoxStatus") -> bool:
        """Переход допустим только на следующий статус: без пропусков и возвратов."""
        return self.next_status == target


_NEXT_STATUS: Final[dict[BoxStatus, BoxStatus | None]] = {
    BoxStatus.OPEN: BoxStatus.CLOSED,
    BoxStatus.CLOSED: BoxStatus.SHIPPED,
    BoxStatus.SHIPPED: BoxStatus.DELIVERED,
    BoxStatus.DELIVERED: None,
}


# =============================================================================
# BOX CONSOLIDATION MODEL
# =============================================================================


class BoxConsolidation(BaseModel):
    """
    Коробка, в которую клиент накапливает товары до единой отправки.

    Принадлежит клиенту; движок получает существующий агрегат,
    применяет операцию и возвращает обновлённый агрегат.
    Хранение — ответственность внешнего слоя.
    """

    # Идентификация
    box_id: str = Field(..., min_length=1, description="Идентификатор коробки")
    customer_id: str = Field(..., min_length=1, description="Владелец коробки")
    box_number: str = Field(..., min_length=1, description="Номер коробки для отображения")

    # Состояние
    status: BoxStatus = Field(BoxStatus.OPEN, description="Статус lifecycle")
    box_type_preference: BoxType = Field(BoxType.SOLO, description="Предпочтение solo/shared")
    items: tuple[ConsolidatedItem, ...] = Field(
        default_factory=tuple, description="Товары в порядке приёмки"
    )

    # Free period и штраф
    first_item_received_at: datetime | None = Field(
        None, description="Время приёмки первого товара"
    )
    free_period_end: datetime | None = Field(
        None, description="Конец бесплатного хранения (включительно)"
    )
    penalty_start_date: datetime | None = Field(
        None, description="Начало начисления штрафа (устанавливается один раз)"
    )
    daily_penalty: int = Field(..., ge=0, description="Штраф за сутки сверх free period, PHP")

    # Время
    created_at: datetime = Field(..., description="Время создания коробки")
    closed_at: datetime | None = Field(None, description="Время закрытия")
    shipped_at: datetime | None = Field(None, description="Время отправки")
    delivered_at: datetime | None = Field(None, description="Время доставки")

    # Финальный quote (формируется при закрытии)
    final_quote: ShippingQuote | None = Field(None, description="Quote, выпущенный при закрытии")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_consistency(self) -> "BoxConsolidation":
        """Согласованность free period и штрафных полей."""
        if self.items and self.first_item_received_at is None:
            raise ValueError("first_item_received_at is required once items are present")

        if (self.first_item_received_at is None) != (self.free_period_end is None):
            raise ValueError("first_item_received_at and free_period_end are set together")

        if self.penalty_start_date is not None:
            if self.free_period_end is None:
                raise ValueError("penalty_start_date requires free_period_end")
            if self.penalty_start_date < self.free_period_end:
                raise ValueError(
                    f"penalty_start_date {self.penalty_start_date} precedes "
                    f"free_period_end {self.free_period_end}"
                )

        if self.status != BoxStatus.OPEN and self.closed_at is None:
            raise ValueError(f"closed_at is required for status {self.status.value}")

        return self

    # -------------------------------------------------------------------------
    # Производные величины
    # -------------------------------------------------------------------------

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_weight(self) -> float:
        """Суммарный вес товаров (кг)."""
        return sum((item.weight_kg for item in self.items), 0.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_volume(self) -> float:
        """Суммарный объём товаров (CBM)."""
        return sum((item.volume for item in self.items), 0.0)

    @property
    def accepts_items(self) -> bool:
        return self.status == BoxStatus.OPEN

    def find_item(self, item_id: str) -> ConsolidatedItem | None:
        """Поиск товара по идентификатору."""
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    # -------------------------------------------------------------------------
    # Штраф за хранение (derived read)
    # -------------------------------------------------------------------------

    def penalty_evaluation_time(self, now: datetime) -> datetime:
        """
        Эффективное время оценки штрафа.

        После закрытия штраф заморожен на closed_at.
        """
        if self.closed_at is not None:
            return min(now, self.closed_at)
        return now

    def effective_penalty_start(self) -> datetime | None:
        """Начало начисления: сохранённое значение или free_period_end."""
        if self.penalty_start_date is not None:
            return self.penalty_start_date
        return self.free_period_end

    def is_in_free_period(self, now: datetime) -> bool:
        """
        Находится ли коробка в бесплатном периоде.

        Граница включительна: момент free_period_end ещё бесплатный.
        Коробка без товаров всегда в бесплатном периоде.
        """
        if self.free_period_end is None:
            return True
        return self.penalty_evaluation_time(now) <= self.free_period_end

    def days_over_free(self, now: datetime) -> int:
        """
        Количество штрафных суток (ceiling: неполные сутки = полные).
        """
        if self.is_in_free_period(now):
            return 0

        # Вне free period free_period_end всегда установлен
        start = self.effective_penalty_start() or self.free_period_end
        return ceil_days(self.penalty_evaluation_time(now) - start)

    def days_remaining_in_free_period(self, now: datetime) -> int:
        """Оставшиеся сутки бесплатного хранения (ceiling), 0 после дедлайна."""
        if self.free_period_end is None or not self.is_in_free_period(now):
            return 0
        return ceil_days(self.free_period_end - self.penalty_evaluation_time(now))

    def current_penalty(self, now: datetime) -> int:
        """
        Текущий начисленный штраф (PHP).

        current_penalty = days_over_free(now) * daily_penalty

        Вычисляется на каждый запрос; никогда не хранится.

        Args:
            now: Время запроса (передаётся вызывающим кодом, системные часы не читаются)

        Returns:
            Штраф в целых PHP
        """
        return self.days_over_free(now) * self.daily_penalty
