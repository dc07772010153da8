# pos_analytics/utilities/items.py
from __future__ import annotations

from typing import Iterable, List, Tuple

import pandas as pd


def parse_item_list(text: str, delimiter: str = ",") -> Tuple[str, ...]:
    """
    Split a delimited item list into trimmed, non-empty tokens.

    Splitting is purely lexical. Token text and case are preserved, so
    "Milk" and "milk" are different items downstream.
    """
    if not isinstance(text, str):
        return ()
    tokens = (tok.strip() for tok in text.split(delimiter))
    return tuple(tok for tok in tokens if tok)


def build_transactions(item_lists: Iterable[str], delimiter: str = ",") -> List[frozenset]:
    """
    Turn a column of item strings into mining transactions (token sets).

    Repeated tokens within one transaction collapse to a single occurrence.
    """
    if isinstance(item_lists, pd.Series):
        item_lists = item_lists.tolist()
    return [frozenset(parse_item_list(s, delimiter)) for s in item_lists]
