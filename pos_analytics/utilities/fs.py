# pos_analytics/utilities/fs.py
from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

PathLike = Union[str, Path]

_ITEMSET_COLUMNS = ("itemsets", "antecedents", "consequents")


def ensure_dir(path: PathLike) -> Path:
    """Create directory if missing and return it as Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_csv(df: pd.DataFrame, out_path: Path) -> Path:
    """
    Save a DataFrame to CSV. Itemset columns (frozensets) are written as
    sorted, comma-separated tokens.
    """
    out = df.copy()
    for col in _ITEMSET_COLUMNS:
        if col in out.columns:
            out[col] = out[col].apply(lambda s: ", ".join(sorted(s)))
    out.to_csv(out_path, index=False)
    return out_path
