# pos_analytics/utilities/summaries.py
from __future__ import annotations

from typing import Dict

import numpy as np
import pandas as pd

from pos_analytics.domain.config import Config


def payment_type_distribution(df: pd.DataFrame, payment_col: str) -> pd.DataFrame:
    """
    Count transactions per payment type.

    Returns a DataFrame with columns ["payment_type", "frequency", "share"]
    sorted by frequency desc, then name.
    """
    out = (
        df.groupby(payment_col, dropna=False)
        .size()
        .reset_index(name="frequency")
        .rename(columns={payment_col: "payment_type"})
    )
    total = int(out["frequency"].sum())
    out["share"] = out["frequency"] / max(total, 1)
    out = out.sort_values(["frequency", "payment_type"], ascending=[False, True]).reset_index(drop=True)
    return out


def spending_by_age(df: pd.DataFrame, age_col: str, total_col: str) -> pd.DataFrame:
    """Total spending per age, ascending by age. Columns: ["age", "total"]."""
    out = (
        df.groupby(age_col)[total_col]
        .sum()
        .reset_index()
        .rename(columns={age_col: "age", total_col: "total"})
    )
    return out.sort_values("age").reset_index(drop=True)


def spending_by_city(df: pd.DataFrame, city_col: str, total_col: str) -> pd.DataFrame:
    """Total spending per city, highest first. Columns: ["city", "total"]."""
    out = (
        df.groupby(city_col)[total_col]
        .sum()
        .reset_index()
        .rename(columns={city_col: "city", total_col: "total"})
    )
    return out.sort_values(["total", "city"], ascending=[False, True]).reset_index(drop=True)


def spending_histogram(values: pd.Series, binwidth: float = 50.0) -> pd.DataFrame:
    """
    Histogram of spending with fixed-width bins anchored at multiples of binwidth.

    Bins are [left, right) except the last one, which is closed. Returns
    columns ["bin_left", "bin_right", "frequency"].
    """
    if binwidth <= 0:
        raise ValueError("binwidth must be > 0")

    v = pd.to_numeric(values, errors="coerce").dropna().to_numpy(dtype=float)
    if v.size == 0:
        return pd.DataFrame({"bin_left": [], "bin_right": [], "frequency": []})

    start = np.floor(v.min() / binwidth) * binwidth
    stop = np.floor(v.max() / binwidth) * binwidth + binwidth
    n_bins = int(round((stop - start) / binwidth))
    edges = start + binwidth * np.arange(n_bins + 1)
    freq, _ = np.histogram(v, bins=edges)

    return pd.DataFrame(
        {
            "bin_left": edges[:-1],
            "bin_right": edges[1:],
            "frequency": freq.astype(int),
        }
    )


def spending_summaries(df: pd.DataFrame, cfg: Config) -> Dict[str, pd.DataFrame]:
    """Compute all spending summaries for a clean table."""
    return {
        "payment_type": payment_type_distribution(df, cfg.col_payment_type),
        "age_spending": spending_by_age(df, cfg.col_age, cfg.col_total),
        "city_spending": spending_by_city(df, cfg.col_city, cfg.col_total),
        "spending_histogram": spending_histogram(df[cfg.col_total], cfg.histogram_binwidth),
    }
