from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Iterable, List, Mapping, Tuple, Union
import logging

import numpy as np
import pandas as pd

from pos_analytics.domain.config import Config
from pos_analytics.domain.errors import EmptyDatasetError, MissingColumnsError
from pos_analytics.domain.footprint import AnalysisFootprint
from pos_analytics.domain.records import TransactionRecord
from pos_analytics.utilities.items import parse_item_list

log = logging.getLogger(__name__)

RawData = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]
Step = Callable[[AnalysisFootprint], AnalysisFootprint]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def as_frame(raw: RawData) -> pd.DataFrame:
    """Accept a DataFrame or any iterable of row mappings."""
    if isinstance(raw, pd.DataFrame):
        return raw.copy()
    return pd.DataFrame(list(raw))


def _present_numeric_columns(df: pd.DataFrame, cfg: Config) -> List[str]:
    return [c for c in cfg.numeric_columns if c in df.columns]


def _blank(s: pd.Series) -> pd.Series:
    """True where a categorical value is missing or only whitespace."""
    return s.isna() | s.astype("string").str.strip().fillna("").eq("")


def _iqr_fences(values: pd.Series, multiplier: float) -> Tuple[float, float]:
    q1, q3 = values.quantile([0.25, 0.75]).tolist()
    iqr = q3 - q1
    return q1 - multiplier * iqr, q3 + multiplier * iqr


def _require_clean_df(fp: AnalysisFootprint) -> pd.DataFrame:
    if fp.clean_df is None:
        raise ValueError("fp.clean_df is None. Run normalize_schema first.")
    return fp.clean_df


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------
def log_config(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Store config snapshot in extras for reproducibility.
    """
    fp.add_extra("config", asdict(fp.config))
    return fp


def normalize_schema(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Check the required columns and keep only the schema columns.

    Unexpected columns are ignored. `count` is optional.
    """
    cfg = fp.config
    if fp.raw_df is None:
        raise ValueError("fp.raw_df is None. Load the raw dataset first.")

    df = fp.raw_df

    if len(df) == 0:
        raise EmptyDatasetError("The raw dataset has no rows.")

    missing = [c for c in cfg.required_columns if c not in df.columns]
    if missing:
        raise MissingColumnsError(missing, [str(c) for c in df.columns])

    keep = list(cfg.required_columns)
    if cfg.col_count and cfg.col_count in df.columns:
        keep.append(cfg.col_count)
    else:
        fp.add_extra("warning_missing_count_col", cfg.col_count)

    ignored = [str(c) for c in df.columns if c not in keep]
    if ignored:
        log.debug("Ignoring non-schema columns: %s", ignored)

    fp.clean_df = df.loc[:, keep].copy()
    fp.add_extra("rows_loaded", int(len(df)))
    fp.add_extra("ignored_columns", ignored)
    return fp


def drop_missing_rows(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Drop rows with any missing or unparseable field.

    - numeric columns are coerced; NaN, +/-inf and non-integral ages are dropped
    - blank payment type / city / item list is dropped
    - an item list with no tokens (e.g. ", ,") counts as missing
    """
    cfg = fp.config
    df = _require_clean_df(fp).copy()
    before = len(df)

    for col in _present_numeric_columns(df, cfg):
        df[col] = pd.to_numeric(df[col], errors="coerce").replace([np.inf, -np.inf], np.nan)

    valid = pd.Series(True, index=df.index)
    for col in _present_numeric_columns(df, cfg):
        valid &= df[col].notna()
    valid &= (df[cfg.col_age] % 1 == 0).fillna(False)

    for col in cfg.categorical_columns:
        valid &= ~_blank(df[col])

    has_tokens = df[cfg.col_items].apply(
        lambda s: bool(parse_item_list(s, cfg.item_delimiter)) if isinstance(s, str) else False
    )
    valid &= has_tokens.astype(bool)

    df = df.loc[valid].copy()
    for col in cfg.categorical_columns:
        df[col] = df[col].astype(str)

    after = len(df)
    fp.clean_df = df
    fp.add_extra("rows_dropped_missing", int(before - after))
    log.info("Dropped %d row(s) with missing or unparseable fields (%d left)", before - after, after)

    if after == 0:
        raise EmptyDatasetError(
            f"No usable rows left after dropping missing/unparseable fields ({before} read)."
        )
    return fp


def drop_duplicate_rows(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Remove rows identical on every schema field, keeping the first occurrence.

    Item lists are compared without their leading/trailing whitespace, which
    `trim_items` strips later anyway.
    """
    cfg = fp.config
    df = _require_clean_df(fp)
    before = len(df)

    key = df.assign(**{cfg.col_items: df[cfg.col_items].str.strip()})
    df = df.loc[~key.duplicated(keep="first")].copy()

    after = len(df)
    fp.clean_df = df
    fp.add_extra("rows_dropped_duplicates", int(before - after))
    log.info("Dropped %d duplicate row(s) (%d left)", before - after, after)
    return fp


def drop_negative_rows(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Reject rows where any numeric field is negative.
    """
    cfg = fp.config
    df = _require_clean_df(fp)
    before = len(df)

    mask = pd.Series(True, index=df.index)
    for col in _present_numeric_columns(df, cfg):
        mask &= df[col] >= 0

    df = df.loc[mask].copy()
    after = len(df)
    fp.clean_df = df
    fp.add_extra("rows_dropped_negative", int(before - after))
    log.info("Dropped %d row(s) with negative numeric fields (%d left)", before - after, after)
    return fp


def drop_outliers(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Boxplot rule on the outlier column: keep rows inside
    [Q1 - m*IQR, Q3 + m*IQR]. The fences are computed once, on the rows that
    reach this step, so the result does not depend on row order.
    """
    cfg = fp.config
    df = _require_clean_df(fp)
    col = cfg.outlier_col

    if col not in df.columns:
        raise MissingColumnsError([col], [str(c) for c in df.columns])

    if df.empty:
        fp.add_extra("rows_dropped_outliers", 0)
        return fp

    lower, upper = _iqr_fences(df[col], cfg.iqr_multiplier)
    before = len(df)
    df = df.loc[df[col].between(lower, upper, inclusive="both")].copy()
    after = len(df)

    fp.clean_df = df
    fp.add_extra("outlier_fences", (float(lower), float(upper)))
    fp.add_extra("rows_dropped_outliers", int(before - after))
    log.info(
        "Dropped %d outlier row(s) on '%s' outside [%.4g, %.4g] (%d left)",
        before - after, col, lower, upper, after,
    )
    return fp


def trim_items(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Strip leading/trailing whitespace from the raw item-list string.
    Tokenization happens later, in the item parser.
    """
    cfg = fp.config
    df = _require_clean_df(fp).copy()
    df[cfg.col_items] = df[cfg.col_items].str.strip()
    fp.clean_df = df
    return fp


def finalize_cleaning(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Final sanity normalization:
      - stable dtypes (age int64, other numerics float64, categoricals str)
      - fresh RangeIndex, row-aligned with fp.records

    Raises EmptyDatasetError when the later filters (negatives, outliers)
    removed every remaining row.
    """
    cfg = fp.config
    df = _require_clean_df(fp).copy()
    if df.empty:
        raise EmptyDatasetError(
            f"No rows left after cleaning ({fp.extras.get('rows_loaded', 0)} read, "
            f"{fp.extras.get('rows_dropped_negative', 0)} negative, "
            f"{fp.extras.get('rows_dropped_outliers', 0)} outliers)."
        )

    df[cfg.col_age] = df[cfg.col_age].astype("int64")
    for col in _present_numeric_columns(df, cfg):
        if col != cfg.col_age:
            df[col] = df[col].astype("float64")
    for col in cfg.categorical_columns:
        df[col] = df[col].astype(str)

    df = df.reset_index(drop=True)
    fp.clean_df = df
    fp.records = to_records(df, cfg)
    fp.add_extra("rows_final_clean", int(len(df)))
    log.info("Cleaning finished: %d row(s)", len(df))
    return fp


CLEANING_STEPS: Tuple[Step, ...] = (
    log_config,
    normalize_schema,
    drop_missing_rows,
    drop_duplicate_rows,
    drop_negative_rows,
    drop_outliers,
    trim_items,
    finalize_cleaning,
)


# -----------------------------------------------------------------------------
# Runners
# -----------------------------------------------------------------------------
def run_cleaning(fp: AnalysisFootprint) -> AnalysisFootprint:
    for step in CLEANING_STEPS:
        fp = step(fp)
    return fp


def clean_transactions(raw: RawData, config: Config) -> pd.DataFrame:
    """
    Validate and normalize raw rows into the clean transaction table.

    Raises:
      MissingColumnsError: a required column is absent
      EmptyDatasetError: the input has no rows, or no row survives cleaning
    """
    fp = AnalysisFootprint(config=config, raw_df=as_frame(raw))
    return run_cleaning(fp).clean_df  # type: ignore[return-value]


def to_records(clean_df: pd.DataFrame, config: Config) -> List[TransactionRecord]:
    """Build immutable TransactionRecords from a clean table (row order kept)."""
    has_count = bool(config.col_count) and config.col_count in clean_df.columns
    records: List[TransactionRecord] = []
    for row in clean_df.to_dict("records"):
        records.append(
            TransactionRecord(
                payment_type=row[config.col_payment_type],
                age=int(row[config.col_age]),
                city=row[config.col_city],
                total=float(row[config.col_total]),
                items=parse_item_list(row[config.col_items], config.item_delimiter),
                count=float(row[config.col_count]) if has_count else None,
            )
        )
    return records
