"""
HanBuy — Box Consolidation & Shipping-Fee Engine.

Korea → Philippines consolidation: fee calculator (ISF + LSF),
box consolidation lifecycle with free-storage window and daily penalty.
"""

__version__ = "0.1.0"
