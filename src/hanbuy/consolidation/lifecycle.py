"""Consolidation Lifecycle — state machine коробки консолидации.

Состояния: open → closed → shipped → delivered (terminal).
- Без пропусков и без возвратов
- Товары принимаются только в open
- Free period фиксируется при приёмке первого товара
- Штраф за хранение — производный read от переданного "now"
- При закрытии штраф замораживается на closed_at и формируется финальный quote

Все операции чистые: получают агрегат, возвращают новый агрегат.
Системные часы не читаются — время всегда передаётся вызывающим кодом.
Сериализация операций над одной коробкой — ответственность вызывающего кода.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from hanbuy.core.domain.box import BoxConsolidation, BoxStatus
from hanbuy.core.domain.item import ConsolidatedItem, Dimensions
from hanbuy.core.domain.quote import BoxType, ShippingMethod, ShippingQuote
from hanbuy.core.errors import InvalidArgument, InvalidState
from hanbuy.core.math.numerical_safeguards import validate_non_negative
from hanbuy.fees.calculator import ShippingFeeCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleConfig:
    """Конфигурация lifecycle консолидации.

    - free_period_days: бесплатное хранение с момента приёмки первого товара (2 месяца)
    - daily_penalty: штраф за каждые начатые сутки сверх free period, PHP
    - penalty_reminder_lead_days: за сколько суток до конца free period напоминать
    """
    free_period_days: int = 60
    daily_penalty: int = 50
    penalty_reminder_lead_days: int = 7

    def __post_init__(self) -> None:
        if self.free_period_days < 0:
            raise InvalidArgument(f"free_period_days must be non-negative, got {self.free_period_days}")
        if self.daily_penalty < 0:
            raise InvalidArgument(f"daily_penalty must be non-negative, got {self.daily_penalty}")
        if self.penalty_reminder_lead_days < 0:
            raise InvalidArgument(
                f"penalty_reminder_lead_days must be non-negative, got {self.penalty_reminder_lead_days}"
            )

    @property
    def free_period(self) -> timedelta:
        return timedelta(days=self.free_period_days)


@dataclass(frozen=True)
class BoxTransitionResult:
    """Результат операции над коробкой."""

    box: BoxConsolidation
    previous_status: BoxStatus
    new_status: BoxStatus

    # Диагностика
    transition_occurred: bool
    transition_reason: str

    # Для отладки
    details: str

    # Финальный quote (только close)
    quote: ShippingQuote | None = None


class PenaltyAssessment(BaseModel):
    """Снапшот штрафа за хранение на момент запроса.

    Только вычисляет цифры; отправка уведомлений (penalty reminder) —
    ответственность внешнего кода.
    """

    box_id: str
    evaluated_at: datetime = Field(..., description="Эффективное время (min(now, closed_at))")
    free_period_end: datetime | None
    penalty_start: datetime | None = Field(..., description="Фактическое начало начисления")
    in_free_period: bool
    days_remaining_in_free_period: int = Field(..., ge=0)
    days_over_free: int = Field(..., ge=0)
    daily_penalty: int = Field(..., ge=0)
    penalty_amount: int = Field(..., ge=0)
    frozen: bool = Field(..., description="True после закрытия коробки")

    model_config = {"frozen": True}


class ConsolidationLifecycle:
    """State machine коробки консолидации.

    Transitions:
    - create_box: → open (без товаров, free period не установлен)
    - receive_item: open → open (первый товар фиксирует free_period_end)
    - correct_item: open → open (явная замена записанного товара)
    - close_box: open → closed (штраф заморожен, финальный quote)
    - ship_box: closed → shipped
    - deliver_box: shipped → delivered (terminal)

    Queries (без изменения состояния):
    - current_penalty / assess_penalty
    - penalty_reminder_due
    """

    def __init__(
        self,
        config: LifecycleConfig | None = None,
        fee_calculator: ShippingFeeCalculator | None = None
    ):
        """
        Args:
            config: конфигурация free period и штрафа
            fee_calculator: калькулятор для финального quote при закрытии
        """
        self.config = config or LifecycleConfig()
        self.fee_calculator = fee_calculator or ShippingFeeCalculator()

    # -------------------------------------------------------------------------
    # Создание и приёмка
    # -------------------------------------------------------------------------

    def create_box(
        self,
        box_id: str,
        customer_id: str,
        box_number: str,
        created_at: datetime,
        box_type_preference: BoxType | str = BoxType.SOLO
    ) -> BoxConsolidation:
        """Создание пустой коробки в статусе open."""
        try:
            preference = BoxType(box_type_preference)
        except ValueError as e:
            raise InvalidArgument(f"Unknown box type: {box_type_preference!r}") from e

        box = BoxConsolidation(
            box_id=box_id,
            customer_id=customer_id,
            box_number=box_number,
            status=BoxStatus.OPEN,
            box_type_preference=preference,
            daily_penalty=self.config.daily_penalty,
            created_at=created_at,
        )
        logger.info("Box %s (%s) created for customer %s", box_id, box_number, customer_id)
        return box

    def receive_item(
        self,
        box: BoxConsolidation,
        *,
        item_id: str,
        weight: float,
        received_at: datetime,
        volume: float | None = None,
        dimensions: Dimensions | None = None,
        tracking_number: str | None = None,
        name: str | None = None
    ) -> BoxTransitionResult:
        """Приёмка товара в коробку.

        Args:
            box: текущий агрегат
            item_id: идентификатор товара (уникален в коробке)
            weight: вес (кг), >= 0
            received_at: время приёмки
            volume: явный объём (CBM), иначе из dimensions
            dimensions: габариты (см)
            tracking_number: трек-номер курьера
            name: название товара

        Returns:
            BoxTransitionResult с обновлённой коробкой

        Raises:
            InvalidState: коробка не open
            InvalidArgument: отрицательный вес/объём, повторный item_id,
                received_at раньше created_at
        """
        self._require_status(box, BoxStatus.OPEN, "receive item into")
        self._require_not_before(box, received_at, box.created_at, "created_at")
        validate_non_negative(weight, "weight")
        if volume is not None:
            validate_non_negative(volume, "volume")
        if box.find_item(item_id) is not None:
            raise InvalidArgument(f"Item {item_id} is already recorded in box {box.box_id}")

        item = ConsolidatedItem(
            item_id=item_id,
            name=name,
            tracking_number=tracking_number,
            received_at=received_at,
            weight_kg=weight,
            dimensions=dimensions,
            volume_cbm=volume,
        )

        updates: dict = {"items": box.items + (item,)}
        first_item = box.first_item_received_at is None
        if first_item:
            updates["first_item_received_at"] = received_at
            updates["free_period_end"] = received_at + self.config.free_period

        updated = self.start_penalty_if_due(box.model_copy(update=updates), received_at)

        details = f"Item {item_id} received: weight={weight}kg volume={item.volume:.4f}cbm"
        if first_item:
            details += f", free period ends {updated.free_period_end.isoformat()}"
        logger.info("Box %s: %s", box.box_id, details)

        return self._create_result(
            box=updated,
            previous_status=box.status,
            transition_occurred=False,
            transition_reason="first_item_received" if first_item else "item_received",
            details=details
        )

    def correct_item(
        self,
        box: BoxConsolidation,
        item_id: str,
        *,
        weight: float | None = None,
        volume: float | None = None,
        dimensions: Dimensions | None = None,
        tracking_number: str | None = None,
        name: str | None = None
    ) -> BoxTransitionResult:
        """Коррекция записанного товара явной заменой.

        free_period_end не меняется: он зафиксирован приёмкой первого товара.
        Коррекция габаритов без явного volume сбрасывает volume_cbm,
        и объём далее вычисляется из новых габаритов.

        Raises:
            InvalidState: коробка не open
            InvalidArgument: товар не найден, отрицательный вес/объём
        """
        self._require_status(box, BoxStatus.OPEN, "correct item in")
        existing = box.find_item(item_id)
        if existing is None:
            raise InvalidArgument(f"Item {item_id} not found in box {box.box_id}")

        corrections: dict = {}
        if weight is not None:
            validate_non_negative(weight, "weight")
            corrections["weight_kg"] = weight
        if volume is not None:
            validate_non_negative(volume, "volume")
            corrections["volume_cbm"] = volume
        if dimensions is not None:
            corrections["dimensions"] = dimensions
            if volume is None:
                # Новые габариты определяют объём вместо ранее записанного
                corrections["volume_cbm"] = None
        if tracking_number is not None:
            corrections["tracking_number"] = tracking_number
        if name is not None:
            corrections["name"] = name

        replacement = ConsolidatedItem.model_validate(
            {**existing.model_dump(), **corrections}
        )
        items = tuple(replacement if i.item_id == item_id else i for i in box.items)
        updated = box.model_copy(update={"items": items})

        details = f"Item {item_id} corrected: {sorted(corrections)}"
        logger.info("Box %s: %s", box.box_id, details)

        return self._create_result(
            box=updated,
            previous_status=box.status,
            transition_occurred=False,
            transition_reason="item_corrected",
            details=details
        )

    # -------------------------------------------------------------------------
    # Штраф за хранение
    # -------------------------------------------------------------------------

    def start_penalty_if_due(self, box: BoxConsolidation, now: datetime) -> BoxConsolidation:
        """Фиксация penalty_start_date, если free period истёк.

        Устанавливается не более одного раза, только для open коробки,
        значение — free_period_end.
        """
        if (
            box.status != BoxStatus.OPEN
            or box.free_period_end is None
            or box.penalty_start_date is not None
            or now <= box.free_period_end
        ):
            return box

        logger.info(
            "Box %s: free period ended %s, penalty accrues at %d PHP/day",
            box.box_id, box.free_period_end.isoformat(), box.daily_penalty
        )
        return box.model_copy(update={"penalty_start_date": box.free_period_end})

    def current_penalty(self, box: BoxConsolidation, now: datetime) -> int:
        """Текущий штраф (PHP): ceil(days) * daily_penalty, заморожен на closed_at."""
        return box.current_penalty(now)

    def assess_penalty(self, box: BoxConsolidation, now: datetime) -> PenaltyAssessment:
        """Полный снапшот штрафа для отображения и уведомлений.

        Передача будущего `now` даёт прогноз штрафа на эту дату.
        """
        in_free_period = box.is_in_free_period(now)
        return PenaltyAssessment(
            box_id=box.box_id,
            evaluated_at=box.penalty_evaluation_time(now),
            free_period_end=box.free_period_end,
            penalty_start=None if in_free_period else box.effective_penalty_start(),
            in_free_period=in_free_period,
            days_remaining_in_free_period=box.days_remaining_in_free_period(now),
            days_over_free=box.days_over_free(now),
            daily_penalty=box.daily_penalty,
            penalty_amount=box.current_penalty(now),
            frozen=box.closed_at is not None,
        )

    def penalty_reminder_due(self, box: BoxConsolidation, now: datetime) -> bool:
        """Нужно ли напоминание о штрафе (penalty reminder).

        True для open коробки с товарами, если штраф уже начисляется
        или до конца free period осталось не больше penalty_reminder_lead_days.
        """
        if box.status != BoxStatus.OPEN or box.free_period_end is None:
            return False
        if not box.is_in_free_period(now):
            return True
        return box.free_period_end - now <= timedelta(days=self.config.penalty_reminder_lead_days)

    # -------------------------------------------------------------------------
    # Переходы статуса
    # -------------------------------------------------------------------------

    def close_box(
        self,
        box: BoxConsolidation,
        now: datetime,
        box_type: BoxType | str | None = None,
        *,
        declared_value_php: float = 0.0,
        shipping_method: ShippingMethod | str | None = None
    ) -> BoxTransitionResult:
        """Закрытие коробки: open → closed.

        - penalty_start_date фиксируется, если free period истёк
        - closed_at = now, штраф далее заморожен на closed_at
        - финальный ShippingQuote по накопленному весу/объёму

        Пустую коробку закрыть можно: quote с isf = lsf = 0.

        Args:
            box: текущий агрегат
            now: время закрытия
            box_type: тип коробки (default — box_type_preference)
            declared_value_php: объявленная стоимость (PHP) для страховки
            shipping_method: способ доставки (default из FeeRates)

        Raises:
            InvalidState: коробка не open
            InvalidArgument: now раньше created_at
        """
        self._require_transition(box, BoxStatus.CLOSED)
        self._require_not_before(box, now, box.created_at, "created_at")

        chosen_type = box.box_type_preference if box_type is None else box_type
        stamped = self.start_penalty_if_due(box, now)
        closed = stamped.model_copy(update={"status": BoxStatus.CLOSED, "closed_at": now})

        quote = self.fee_calculator.build_quote(
            chosen_type,
            closed.total_weight,
            closed.total_volume,
            now,
            box_id=closed.box_id,
            shipping_method=shipping_method,
            declared_value_php=declared_value_php,
            storage_penalty=closed.current_penalty(now),
        )
        closed = closed.model_copy(
            update={"final_quote": quote, "box_type_preference": quote.box_type}
        )

        details = (
            f"Box closed: items={len(closed.items)} weight={closed.total_weight:.3f}kg "
            f"volume={closed.total_volume:.4f}cbm isf={quote.isf} lsf={quote.lsf} "
            f"penalty={quote.storage_penalty} total={quote.total_cost} PHP"
        )
        logger.info("Box %s: %s", box.box_id, details)

        return self._create_result(
            box=closed,
            previous_status=box.status,
            transition_occurred=True,
            transition_reason="open_to_closed",
            details=details,
            quote=quote
        )

    def ship_box(self, box: BoxConsolidation, now: datetime) -> BoxTransitionResult:
        """Отправка коробки: closed → shipped.

        Raises:
            InvalidState: коробка не closed
            InvalidArgument: now раньше closed_at
        """
        self._require_transition(box, BoxStatus.SHIPPED)
        self._require_not_before(box, now, box.closed_at, "closed_at")

        shipped = box.model_copy(update={"status": BoxStatus.SHIPPED, "shipped_at": now})
        logger.info("Box %s shipped at %s", box.box_id, now.isoformat())

        return self._create_result(
            box=shipped,
            previous_status=box.status,
            transition_occurred=True,
            transition_reason="closed_to_shipped",
            details=f"Box shipped at {now.isoformat()}"
        )

    def deliver_box(self, box: BoxConsolidation, now: datetime) -> BoxTransitionResult:
        """Доставка коробки: shipped → delivered (terminal).

        Raises:
            InvalidState: коробка не shipped
            InvalidArgument: now раньше shipped_at
        """
        self._require_transition(box, BoxStatus.DELIVERED)
        self._require_not_before(box, now, box.shipped_at, "shipped_at")

        delivered = box.model_copy(update={"status": BoxStatus.DELIVERED, "delivered_at": now})
        logger.info("Box %s delivered at %s", box.box_id, now.isoformat())

        return self._create_result(
            box=delivered,
            previous_status=box.status,
            transition_occurred=True,
            transition_reason="shipped_to_delivered",
            details=f"Box delivered at {now.isoformat()}"
        )

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _require_status(self, box: BoxConsolidation, expected: BoxStatus, operation: str) -> None:
        """Guard: операция допустима только в статусе expected."""
        if box.status != expected:
            logger.warning(
                "Rejected: cannot %s box %s in status %s", operation, box.box_id, box.status.value
            )
            raise InvalidState(
                f"Cannot {operation} box {box.box_id}: status is {box.status.value}, "
                f"expected {expected.value}"
            )

    def _require_transition(self, box: BoxConsolidation, target: BoxStatus) -> None:
        """Guard: переход только на следующий статус, без пропусков и возвратов."""
        if not box.status.can_transition_to(target):
            logger.warning(
                "Rejected transition for box %s: %s → %s",
                box.box_id, box.status.value, target.value
            )
            raise InvalidState(
                f"Cannot move box {box.box_id} from {box.status.value} to {target.value}"
            )

    def _require_not_before(
        self,
        box: BoxConsolidation,
        now: datetime,
        previous: datetime | None,
        field_name: str
    ) -> None:
        if previous is not None and now < previous:
            raise InvalidArgument(
                f"Timestamp {now.isoformat()} precedes {field_name} "
                f"{previous.isoformat()} of box {box.box_id}"
            )

    def _create_result(
        self,
        box: BoxConsolidation,
        previous_status: BoxStatus,
        transition_occurred: bool,
        transition_reason: str,
        details: str,
        quote: ShippingQuote | None = None
    ) -> BoxTransitionResult:
        """Создание результата операции."""
        return BoxTransitionResult(
            box=box,
            previous_status=previous_status,
            new_status=box.status,
            transition_occurred=transition_occurred,
            transition_reason=transition_reason,
            details=details,
            quote=quote
        )
