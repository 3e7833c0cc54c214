"""Valuation extraction from Ghostfolio account records."""

from .value_extractor import ExtractionResult, ValueExtractor

__all__ = ["ExtractionResult", "ValueExtractor"]
