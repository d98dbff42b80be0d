"""Consolidation Lifecycle — управление коробкой консолидации клиента.

- State machine open → closed → shipped → delivered
- Free period с момента приёмки первого товара
- Ежедневный штраф за хранение (производный read, заморожен при закрытии)
- Финальный quote при закрытии коробки
"""

from .lifecycle import (
    BoxTransitionResult,
    ConsolidationLifecycle,
    LifecycleConfig,
    PenaltyAssessment,
)

__all__ = [
    "BoxTransitionResult",
    "ConsolidationLifecycle",
    "LifecycleConfig",
    "PenaltyAssessment",
]
