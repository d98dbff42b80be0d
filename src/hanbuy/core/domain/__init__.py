"""
Domain models and value objects.

Contains fundamental domain entities like ConsolidatedItem, BoxConsolidation,
FeeBreakdown, ShippingQuote and the KRW ↔ PHP currency converters.
"""

from hanbuy.core.domain.box import BoxConsolidation, BoxStatus
from hanbuy.core.domain.currency import (
    CURRENCY_DECIMALS,
    CURRENCY_SYMBOLS,
    Currency,
    convert_krw_to_php,
    convert_php_to_krw,
    currency_symbol,
    format_currency,
)
from hanbuy.core.domain.item import CM3_PER_CBM, ConsolidatedItem, Dimensions
from hanbuy.core.domain.quote import (
    BoxType,
    FeeBreakdown,
    FreightEstimate,
    ShippingMethod,
    ShippingQuote,
)

__all__ = [
    # Currency module
    "CURRENCY_DECIMALS",
    "CURRENCY_SYMBOLS",
    "Currency",
    "convert_krw_to_php",
    "convert_php_to_krw",
    "currency_symbol",
    "format_currency",
    # Item model
    "CM3_PER_CBM",
    "ConsolidatedItem",
    "Dimensions",
    # Box model
    "BoxConsolidation",
    "BoxStatus",
    # Quote models
    "BoxType",
    "FeeBreakdown",
    "FreightEstimate",
    "ShippingMethod",
    "ShippingQuote",
]
