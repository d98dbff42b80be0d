"""
Contract Validation Module

Модуль для валидации JSON контрактов выходных записей движка HanBuy.
"""

from .validators import (
    BoxConsolidationValidator,
    ContractValidator,
    FeeBreakdownValidator,
    PenaltyAssessmentValidator,
    SchemaLoader,
    ShippingQuoteValidator,
    validate_box_consolidation,
    validate_fee_breakdown,
    validate_model,
    validate_penalty_assessment,
    validate_shipping_quote,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "FeeBreakdownValidator",
    "ShippingQuoteValidator",
    "BoxConsolidationValidator",
    "PenaltyAssessmentValidator",
    # Functions
    "validate_model",
    "validate_fee_breakdown",
    "validate_shipping_quote",
    "validate_box_consolidation",
    "validate_penalty_assessment",
]
