"""
Тесты для Consolidation Lifecycle

Проверяет:
1. Создание коробки и приёмку товаров
2. Фиксацию free period при первом товаре
3. Штраф за хранение: граница включительно, ceiling по суткам, заморозка при закрытии
4. Порядок переходов open → closed → shipped → delivered
5. Отклонение недопустимых операций без изменения агрегата
"""

import logging
from datetime import datetime, timedelta

import pytest

from hanbuy.consolidation import (
    BoxTransitionResult,
    ConsolidationLifecycle,
    LifecycleConfig,
    PenaltyAssessment,
)
from hanbuy.core.domain import BoxConsolidation, BoxStatus, BoxType, Dimensions, ShippingMethod
from hanbuy.core.errors import InvalidArgument, InvalidState
from hanbuy.fees import FeeRates, ShippingFeeCalculator

CREATED_AT = datetime(2024, 11, 1, 8, 0, 0)
# +60 суток → free_period_end = 2025-01-10T23:59:59
FIRST_ITEM_AT = datetime(2024, 11, 11, 23, 59, 59)
FREE_PERIOD_END = datetime(2025, 1, 10, 23, 59, 59)


@pytest.fixture
def lifecycle() -> ConsolidationLifecycle:
    return ConsolidationLifecycle()


@pytest.fixture
def empty_box(lifecycle: ConsolidationLifecycle) -> BoxConsolidation:
    return lifecycle.create_box("box-1", "cust-1", "HB-0001", CREATED_AT)


@pytest.fixture
def loaded_box(lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation) -> BoxConsolidation:
    """Коробка с двумя товарами: итого 5 кг, 0.1 CBM"""
    box = lifecycle.receive_item(
        empty_box, item_id="item-1", weight=2.0, volume=0.04, received_at=FIRST_ITEM_AT
    ).box
    return lifecycle.receive_item(
        box,
        item_id="item-2",
        weight=3.0,
        dimensions=Dimensions(length_cm=50, width_cm=40, height_cm=30),
        received_at=FIRST_ITEM_AT + timedelta(days=5),
    ).box


# =============================================================================
# CREATE / RECEIVE
# =============================================================================


class TestCreateBox:
    """Тесты create_box"""

    def test_new_box_is_open_and_empty(self, empty_box: BoxConsolidation) -> None:
        assert empty_box.status == BoxStatus.OPEN
        assert empty_box.items == ()
        assert empty_box.total_weight == 0.0
        assert empty_box.first_item_received_at is None
        assert empty_box.free_period_end is None
        assert empty_box.daily_penalty == 50

    def test_preference(self, lifecycle: ConsolidationLifecycle) -> None:
        box = lifecycle.create_box("box-2", "cust-1", "HB-0002", CREATED_AT, "shared")
        assert box.box_type_preference == BoxType.SHARED

    def test_unknown_preference(self, lifecycle: ConsolidationLifecycle) -> None:
        with pytest.raises(InvalidArgument):
            lifecycle.create_box("box-2", "cust-1", "HB-0002", CREATED_AT, "jumbo")

    def test_configured_daily_penalty(self) -> None:
        lifecycle = ConsolidationLifecycle(LifecycleConfig(daily_penalty=75))
        box = lifecycle.create_box("box-3", "cust-1", "HB-0003", CREATED_AT)
        assert box.daily_penalty == 75


class TestReceiveItem:
    """Тесты receive_item"""

    def test_first_item_sets_free_period(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        result = lifecycle.receive_item(
            empty_box, item_id="item-1", weight=2.0, volume=0.04, received_at=FIRST_ITEM_AT
        )

        assert isinstance(result, BoxTransitionResult)
        assert not result.transition_occurred
        assert result.transition_reason == "first_item_received"
        assert result.box.first_item_received_at == FIRST_ITEM_AT
        assert result.box.free_period_end == FREE_PERIOD_END

    def test_subsequent_item_keeps_free_period(self, loaded_box: BoxConsolidation) -> None:
        assert loaded_box.free_period_end == FREE_PERIOD_END
        assert len(loaded_box.items) == 2

    def test_totals_accumulate(self, loaded_box: BoxConsolidation) -> None:
        assert loaded_box.total_weight == pytest.approx(5.0)
        # 0.04 + 50*40*30/1e6 = 0.1
        assert loaded_box.total_volume == pytest.approx(0.1)

    def test_original_aggregate_unchanged(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        lifecycle.receive_item(empty_box, item_id="item-1", weight=1.0, received_at=FIRST_ITEM_AT)
        assert empty_box.items == ()
        assert empty_box.free_period_end is None

    def test_item_reason(self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation) -> None:
        result = lifecycle.receive_item(
            loaded_box, item_id="item-3", weight=1.0, received_at=FIRST_ITEM_AT + timedelta(days=6)
        )
        assert result.transition_reason == "item_received"

    def test_duplicate_item_rejected(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument, match="already recorded"):
            lifecycle.receive_item(
                loaded_box, item_id="item-1", weight=1.0, received_at=FIRST_ITEM_AT
            )

    def test_negative_weight_rejected(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument, match="weight"):
            lifecycle.receive_item(empty_box, item_id="x", weight=-1.0, received_at=FIRST_ITEM_AT)

    def test_negative_volume_rejected(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument, match="volume"):
            lifecycle.receive_item(
                empty_box, item_id="x", weight=1.0, volume=-0.1, received_at=FIRST_ITEM_AT
            )

    def test_closed_box_rejects_items(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        closed = lifecycle.close_box(loaded_box, datetime(2024, 12, 1)).box
        with pytest.raises(InvalidState):
            lifecycle.receive_item(
                closed, item_id="late", weight=1.0, received_at=datetime(2024, 12, 2)
            )

    def test_received_before_creation_rejected(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument, match="created_at"):
            lifecycle.receive_item(
                empty_box, item_id="x", weight=1.0, received_at=CREATED_AT - timedelta(seconds=1)
            )

    def test_received_at_creation_instant_accepted(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        result = lifecycle.receive_item(empty_box, item_id="x", weight=1.0, received_at=CREATED_AT)
        assert result.box.first_item_received_at == CREATED_AT

    def test_late_item_stamps_penalty_start(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        result = lifecycle.receive_item(
            loaded_box, item_id="late", weight=1.0, received_at=datetime(2025, 1, 20)
        )
        assert result.box.penalty_start_date == FREE_PERIOD_END
        assert result.box.free_period_end == FREE_PERIOD_END


class TestCorrectItem:
    """Тесты correct_item"""

    def test_weight_correction(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        result = lifecycle.correct_item(loaded_box, "item-1", weight=4.0)

        assert result.transition_reason == "item_corrected"
        assert result.box.find_item("item-1").weight_kg == 4.0
        assert result.box.total_weight == pytest.approx(7.0)
        assert result.box.free_period_end == FREE_PERIOD_END
        # Исходный агрегат не изменён
        assert loaded_box.find_item("item-1").weight_kg == 2.0

    def test_item_order_preserved(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        result = lifecycle.correct_item(loaded_box, "item-1", name="Skincare set")
        assert [i.item_id for i in result.box.items] == ["item-1", "item-2"]
        assert result.box.items[0].name == "Skincare set"

    def test_dimensions_correction_replaces_explicit_volume(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        """item-1 принят с volume=0.04; новые габариты 10×10×10 см дают 0.001 CBM"""
        result = lifecycle.correct_item(
            loaded_box, "item-1", dimensions=Dimensions(length_cm=10, width_cm=10, height_cm=10)
        )

        corrected = result.box.find_item("item-1")
        assert corrected.volume_cbm is None
        assert corrected.volume == pytest.approx(0.001)
        # 0.001 + 0.06 (item-2)
        assert result.box.total_volume == pytest.approx(0.061)
        assert "dimensions" in result.details

    def test_dimensions_with_explicit_volume(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        result = lifecycle.correct_item(
            loaded_box,
            "item-1",
            volume=0.05,
            dimensions=Dimensions(length_cm=10, width_cm=10, height_cm=10),
        )
        assert result.box.find_item("item-1").volume == pytest.approx(0.05)

    def test_dimensions_correction_changes_fees(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        corrected = lifecycle.correct_item(
            loaded_box, "item-2", dimensions=Dimensions(length_cm=100, width_cm=40, height_cm=30)
        ).box
        # 0.04 + 0.12 = 0.16 CBM, 5 кг → isf = round(960 + 400)
        quote = lifecycle.close_box(corrected, datetime(2024, 12, 1)).quote
        assert quote.isf == 1360

    def test_unknown_item(self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation) -> None:
        with pytest.raises(InvalidArgument, match="not found"):
            lifecycle.correct_item(loaded_box, "missing", weight=1.0)

    def test_negative_correction(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument):
            lifecycle.correct_item(loaded_box, "item-1", weight=-2.0)


# =============================================================================
# PENALTY
# =============================================================================


class TestStoragePenalty:
    """Штраф: граница free period включительно, неполные сутки = полные"""

    def test_no_penalty_at_deadline(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        assert lifecycle.current_penalty(loaded_box, datetime(2025, 1, 10, 23, 59, 59)) == 0

    def test_one_second_over_is_one_day(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        assert lifecycle.current_penalty(loaded_box, datetime(2025, 1, 11, 0, 0, 1)) == 50

    def test_three_started_days(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        assert lifecycle.current_penalty(loaded_box, datetime(2025, 1, 13, 0, 0, 0)) == 150

    def test_empty_box_has_no_penalty(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        assert lifecycle.current_penalty(empty_box, datetime(2026, 1, 1)) == 0

    def test_penalty_monotonic(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        moments = [FREE_PERIOD_END + timedelta(hours=h) for h in range(0, 24 * 10, 7)]
        penalties = [lifecycle.current_penalty(loaded_box, m) for m in moments]
        assert penalties == sorted(penalties)

    def test_start_penalty_if_due_sets_once(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        before = lifecycle.start_penalty_if_due(loaded_box, FREE_PERIOD_END)
        assert before.penalty_start_date is None

        stamped = lifecycle.start_penalty_if_due(loaded_box, datetime(2025, 1, 12))
        assert stamped.penalty_start_date == FREE_PERIOD_END

        again = lifecycle.start_penalty_if_due(stamped, datetime(2025, 2, 1))
        assert again is stamped

    def test_start_penalty_ignores_empty_box(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        assert lifecycle.start_penalty_if_due(empty_box, datetime(2026, 1, 1)) is empty_box

    def test_assess_in_free_period(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        assessment = lifecycle.assess_penalty(loaded_box, datetime(2025, 1, 8, 12, 0, 0))

        assert isinstance(assessment, PenaltyAssessment)
        assert assessment.in_free_period
        assert assessment.days_remaining_in_free_period == 3
        assert assessment.penalty_start is None
        assert assessment.penalty_amount == 0
        assert not assessment.frozen

    def test_assess_overdue(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        assessment = lifecycle.assess_penalty(loaded_box, datetime(2025, 1, 13))

        assert not assessment.in_free_period
        assert assessment.penalty_start == FREE_PERIOD_END
        assert assessment.days_over_free == 3
        assert assessment.daily_penalty == 50
        assert assessment.penalty_amount == 150

    def test_reminder_due(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        assert not lifecycle.penalty_reminder_due(loaded_box, datetime(2024, 12, 20))
        assert lifecycle.penalty_reminder_due(loaded_box, datetime(2025, 1, 5))
        assert lifecycle.penalty_reminder_due(loaded_box, datetime(2025, 1, 15))

    def test_no_reminder_for_empty_or_closed(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation, loaded_box: BoxConsolidation
    ) -> None:
        assert not lifecycle.penalty_reminder_due(empty_box, datetime(2026, 1, 1))
        closed = lifecycle.close_box(loaded_box, datetime(2025, 1, 12)).box
        assert not lifecycle.penalty_reminder_due(closed, datetime(2025, 2, 1))


# =============================================================================
# TRANSITIONS
# =============================================================================


class TestCloseBox:
    """Тесты close_box"""

    def test_close_issues_final_quote(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        closed_at = datetime(2024, 12, 1, 10, 0, 0)
        result = lifecycle.close_box(loaded_box, closed_at)

        assert result.transition_occurred
        assert result.transition_reason == "open_to_closed"
        assert result.previous_status == BoxStatus.OPEN
        assert result.new_status == BoxStatus.CLOSED
        assert result.box.closed_at == closed_at

        quote = result.quote
        assert quote is not None
        assert result.box.final_quote == quote
        assert quote.box_id == "box-1"
        assert (quote.isf, quote.lsf, quote.total_cost) == (1000, 300, 1300)
        assert quote.storage_penalty == 0
        assert quote.issued_at == closed_at

    def test_close_as_shared(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        result = lifecycle.close_box(loaded_box, datetime(2024, 12, 1), BoxType.SHARED)
        assert result.quote.lsf == 120
        assert result.quote.total_cost == 1120
        assert result.box.box_type_preference == BoxType.SHARED

    def test_close_with_shipping_method(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        result = lifecycle.close_box(
            loaded_box, datetime(2024, 12, 1), shipping_method=ShippingMethod.EXPRESS
        )
        assert result.quote.shipping_method == ShippingMethod.EXPRESS
        assert result.quote.estimated_days == 3

    def test_close_empty_box(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        result = lifecycle.close_box(empty_box, datetime(2024, 11, 5))
        assert result.quote.isf == 0
        assert result.quote.lsf == 0
        assert result.quote.total_cost == 0

    def test_close_overdue_freezes_penalty(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        closed = lifecycle.close_box(loaded_box, datetime(2025, 1, 12, 12, 0, 0))

        assert closed.box.penalty_start_date == FREE_PERIOD_END
        assert closed.quote.storage_penalty == 100
        assert closed.quote.total_cost == 1300 + 100
        # Далее штраф не растёт
        assert lifecycle.current_penalty(closed.box, datetime(2025, 6, 1)) == 100
        assert lifecycle.assess_penalty(closed.box, datetime(2025, 6, 1)).frozen

    def test_close_uses_configured_rates(self, loaded_box: BoxConsolidation) -> None:
        lifecycle = ConsolidationLifecycle(
            fee_calculator=ShippingFeeCalculator(FeeRates(customs_fee=200))
        )
        result = lifecycle.close_box(loaded_box, datetime(2024, 12, 1))
        assert result.quote.customs_fee == 200
        assert result.quote.total_cost == 1500

    def test_close_before_creation_rejected(
        self, lifecycle: ConsolidationLifecycle, empty_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument, match="created_at"):
            lifecycle.close_box(empty_box, CREATED_AT - timedelta(days=1))

    def test_cannot_close_twice(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        closed = lifecycle.close_box(loaded_box, datetime(2024, 12, 1)).box
        with pytest.raises(InvalidState):
            lifecycle.close_box(closed, datetime(2024, 12, 2))


class TestShipAndDeliver:
    """Тесты ship_box / deliver_box"""

    @pytest.fixture
    def closed_box(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> BoxConsolidation:
        return lifecycle.close_box(loaded_box, datetime(2024, 12, 1)).box

    def test_full_lifecycle(
        self, lifecycle: ConsolidationLifecycle, closed_box: BoxConsolidation
    ) -> None:
        shipped = lifecycle.ship_box(closed_box, datetime(2024, 12, 3))
        assert shipped.transition_reason == "closed_to_shipped"
        assert shipped.box.status == BoxStatus.SHIPPED
        assert shipped.box.shipped_at == datetime(2024, 12, 3)

        delivered = lifecycle.deliver_box(shipped.box, datetime(2024, 12, 17))
        assert delivered.transition_reason == "shipped_to_delivered"
        assert delivered.box.status == BoxStatus.DELIVERED
        assert delivered.box.status.is_terminal
        # Финальный quote сохраняется до конца lifecycle
        assert delivered.box.final_quote == closed_box.final_quote

    def test_cannot_ship_open_box(
        self, lifecycle: ConsolidationLifecycle, loaded_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidState, match="open to shipped"):
            lifecycle.ship_box(loaded_box, datetime(2024, 12, 3))

    def test_cannot_deliver_closed_box(
        self, lifecycle: ConsolidationLifecycle, closed_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidState):
            lifecycle.deliver_box(closed_box, datetime(2024, 12, 3))

    def test_delivered_is_terminal(
        self, lifecycle: ConsolidationLifecycle, closed_box: BoxConsolidation
    ) -> None:
        shipped = lifecycle.ship_box(closed_box, datetime(2024, 12, 3)).box
        delivered = lifecycle.deliver_box(shipped, datetime(2024, 12, 17)).box
        with pytest.raises(InvalidState):
            lifecycle.deliver_box(delivered, datetime(2024, 12, 18))
        with pytest.raises(InvalidState):
            lifecycle.close_box(delivered, datetime(2024, 12, 18))

    def test_ship_before_close_time_rejected(
        self, lifecycle: ConsolidationLifecycle, closed_box: BoxConsolidation
    ) -> None:
        with pytest.raises(InvalidArgument, match="closed_at"):
            lifecycle.ship_box(closed_box, datetime(2024, 11, 30))

    def test_rejected_transition_is_logged(
        self,
        lifecycle: ConsolidationLifecycle,
        loaded_box: BoxConsolidation,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="hanbuy.consolidation.lifecycle"):
            with pytest.raises(InvalidState):
                lifecycle.deliver_box(loaded_box, datetime(2024, 12, 3))
        assert "Rejected transition" in caplog.text

    def test_transitions_logged(
        self,
        lifecycle: ConsolidationLifecycle,
        closed_box: BoxConsolidation,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO, logger="hanbuy.consolidation.lifecycle"):
            lifecycle.ship_box(closed_box, datetime(2024, 12, 3))
        assert "box-1 shipped" in caplog.text
