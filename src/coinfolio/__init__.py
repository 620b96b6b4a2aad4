# src/coinfolio/__init__.py
"""Portfolio tracking core: tiered TTL caches for market data and AI text."""

__version__ = "1.0.0"
