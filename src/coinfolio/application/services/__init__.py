# src/coinfolio/application/services/__init__.py
from .price_service import PriceService
from .ai_advice_service import AiAdviceService
from .report_service import CacheReportService

__all__ = [
    "PriceService",
    "AiAdviceService",
    "CacheReportService",
]
