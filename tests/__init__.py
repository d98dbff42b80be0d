"""
Test suite for HanBuy consolidation engine

Contains:
- tests/unit/          : Unit tests for domain models, fee calculator, lifecycle, contracts, settings
"""
