from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class TransactionRecord:
    """
    One validated point-of-sale transaction.

    Built once per cleaning pass and never mutated. `items` holds the parsed,
    trimmed, non-empty tokens of the item list in their original order.
    """

    payment_type: str
    age: int
    city: str
    total: float
    items: Tuple[str, ...]
    count: Optional[float] = None

    @property
    def basket(self) -> frozenset:
        """Item tokens with set semantics (duplicates collapse)."""
        return frozenset(self.items)
