"""
pos_analytics

Analytics core for point-of-sale transactions:
- cleaning / validation of raw rows
- customer segmentation (PCA -> K-Means)
- co-purchase rules (Apriori -> association rules)
"""

from __future__ import annotations

from pos_analytics.domain.config import Config
from pos_analytics.domain.errors import (
    AnalysisError,
    DegenerateColumnError,
    EmptyDatasetError,
    InsufficientDimensionsError,
    InvalidClusterCountError,
    InvalidThresholdError,
    MissingColumnsError,
    SegmentationError,
)
from pos_analytics.domain.footprint import AnalysisFootprint
from pos_analytics.domain.records import TransactionRecord
from pos_analytics.pipelines.analysis import run_analysis, run_basket_analysis, run_segmentation
from pos_analytics.pipelines.cleaning import clean_transactions, to_records

__all__ = [
    "AnalysisError",
    "AnalysisFootprint",
    "Config",
    "DegenerateColumnError",
    "EmptyDatasetError",
    "InsufficientDimensionsError",
    "InvalidClusterCountError",
    "InvalidThresholdError",
    "MissingColumnsError",
    "SegmentationError",
    "TransactionRecord",
    "clean_transactions",
    "run_analysis",
    "run_basket_analysis",
    "run_segmentation",
    "to_records",
]

__version__ = "0.1.0"
