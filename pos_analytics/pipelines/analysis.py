"""
Pipeline entry points.

    raw rows -> cleaning -> clean table -> summaries
                                        -> segmentation   (PCA -> K-Means)
                                        -> basket analysis (Apriori -> rules)

Each call builds a fresh footprint from the given config and raw data; no
state is kept between calls, so concurrent runs need no coordination.
Segmentation failures (SegmentationError) stop that branch only: the error is
kept on the footprint and basket analysis still runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional
import logging

from pos_analytics.domain.config import Config
from pos_analytics.domain.errors import SegmentationError
from pos_analytics.domain.footprint import AnalysisFootprint
from pos_analytics.pipelines.association_rules import BASKET_STEPS
from pos_analytics.pipelines.cleaning import RawData, as_frame, run_cleaning
from pos_analytics.pipelines.segmentation import SEGMENTATION_STEPS
from pos_analytics.utilities.fs import ensure_dir, write_csv
from pos_analytics.utilities.log import get_logger
from pos_analytics.utilities.summaries import spending_summaries

log = logging.getLogger(__name__)

_SEGMENTATION_FIELDS = (
    "numeric_matrix",
    "pca_embeddings",
    "explained_variance_ratio",
    "cluster_labels",
    "centroids",
    "clustered_df",
    "reduced_df",
)


def compute_summaries(fp: AnalysisFootprint) -> AnalysisFootprint:
    """Spending summaries for the dashboard charts."""
    if fp.clean_df is None:
        raise ValueError("fp.clean_df is None. Run cleaning pipeline first.")
    fp.summaries = spending_summaries(fp.clean_df, fp.config)
    return fp


def run_segmentation(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    PCA -> K-Means over the clean table.

    On failure every segmentation artifact is reset to None before the
    error propagates.
    """
    try:
        for step in SEGMENTATION_STEPS:
            fp = step(fp)
    except SegmentationError:
        for name in _SEGMENTATION_FIELDS:
            setattr(fp, name, None)
        raise
    return fp


def run_basket_analysis(fp: AnalysisFootprint) -> AnalysisFootprint:
    """Item parsing -> Apriori -> rule generation and ranking."""
    for step in BASKET_STEPS:
        fp = step(fp)
    return fp


def run_analysis(
    raw: RawData,
    config: Optional[Config] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> AnalysisFootprint:
    """
    Run the whole pipeline on one raw dataset.

    Raises:
      MissingColumnsError / EmptyDatasetError from cleaning (nothing else runs)
      InvalidThresholdError for out-of-range thresholds
    Segmentation errors are stored in `fp.segmentation_error` instead.
    """
    config = config or Config()
    logger = logger or get_logger("pos_analytics")

    fp = AnalysisFootprint(config=config, raw_df=as_frame(raw))
    logger.info("Starting analysis on %d raw row(s)", len(fp.raw_df))  # type: ignore[arg-type]

    fp = run_cleaning(fp)
    fp = compute_summaries(fp)

    try:
        fp = run_segmentation(fp)
    except SegmentationError as exc:
        fp.segmentation_error = exc
        logger.warning("Segmentation skipped: %s", exc)

    fp = run_basket_analysis(fp)

    logger.info("Analysis completed.")
    return fp


def save_outputs(fp: AnalysisFootprint, out_dir: Path) -> Dict[str, Path]:
    """
    Save clustering and rule tables to CSV under out_dir.
    """
    out = ensure_dir(out_dir)
    saved: Dict[str, Path] = {}

    tables = {
        "clustered_records": fp.clustered_df,
        "reduced_points": fp.reduced_df,
        "frequent_itemsets": fp.frequent_itemsets,
        "rules_by_confidence": fp.rules_by_confidence,
        "rules_by_support": fp.rules_by_support,
    }
    for name, df in tables.items():
        if df is None:
            continue
        saved[name] = write_csv(df, out / f"{name}.csv")

    for name, df in fp.summaries.items():
        saved[name] = write_csv(df, out / f"{name}.csv")

    log.info("Saved %d table(s) to %s", len(saved), out)
    return saved
