"""Fee Calculator — ISF + LSF стоимость доставки Korea → Philippines.

- ISF (International Service Fee): Korea → Manila
- LSF (Local Service Fee): Manila → клиент, скидка для shared коробки
- Quote с надбавками и окном валидности
- Оценка перевозки sea / air / express
"""

from .calculator import (
    DEFAULT_FREIGHT_RATES,
    MIN_FREIGHT_VOLUME_CBM,
    FeeRates,
    FreightRate,
    ShippingFeeCalculator,
    calculate_isf,
    calculate_lsf,
    calculate_shipping_fee,
    cbm_from_dimensions,
)

__all__ = [
    "DEFAULT_FREIGHT_RATES",
    "MIN_FREIGHT_VOLUME_CBM",
    "FeeRates",
    "FreightRate",
    "ShippingFeeCalculator",
    "calculate_isf",
    "calculate_lsf",
    "calculate_shipping_fee",
    "cbm_from_dimensions",
]
