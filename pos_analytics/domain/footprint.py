"""
AnalysisFootprint

This module defines the shared state container (Footprint) passed from step
to step during one analysis run. It stores:
- configuration
- raw and cleaned dataframes, plus the validated records
- artifacts produced by the segmentation and basket-analysis branches

A footprint is created fresh by every `run_analysis` call; nothing is cached
across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from pos_analytics.domain.config import Config
from pos_analytics.domain.errors import SegmentationError
from pos_analytics.domain.records import TransactionRecord


@dataclass
class AnalysisFootprint:
    """
    Footprint shared across all pipelines.

    Notes:
    - raw_df / clean_df / records are filled by the cleaning pipeline
    - segmentation outputs stay None when segmentation fails; the error is
      kept in `segmentation_error` and basket analysis still runs
    """

    # ---- configuration ----
    config: Config

    # ---- dataframes ----
    raw_df: Optional[pd.DataFrame] = None
    clean_df: Optional[pd.DataFrame] = None
    records: List[TransactionRecord] = field(default_factory=list)

    # ---- spending summaries ----
    summaries: Dict[str, pd.DataFrame] = field(default_factory=dict)

    # ---- segmentation (numeric matrix, PCA, clustering) ----
    numeric_matrix: Optional[pd.DataFrame] = None
    pca_embeddings: Optional[np.ndarray] = None
    explained_variance_ratio: Optional[List[float]] = None
    cluster_labels: Optional[np.ndarray] = None
    centroids: Optional[np.ndarray] = None
    clustered_df: Optional[pd.DataFrame] = None
    reduced_df: Optional[pd.DataFrame] = None
    segmentation_error: Optional[SegmentationError] = None

    # ---- basket analysis (transactions, itemsets, rules) ----
    transactions: Optional[List[frozenset]] = None
    frequent_itemsets: Optional[pd.DataFrame] = None
    rules: Optional[pd.DataFrame] = None
    rules_by_confidence: Optional[pd.DataFrame] = None
    rules_by_support: Optional[pd.DataFrame] = None

    # ---- quality metrics and run bookkeeping ----
    metrics: Dict[str, Any] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)

    def add_extra(self, key: str, value: Any) -> None:
        """Record a bookkeeping value (row counts, thresholds, ...) for this run."""
        self.extras[key] = value

    @property
    def has_rules(self) -> bool:
        return self.rules is not None and not self.rules.empty
