from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

# Leading numeric prefix, same leniency as a browser's parseFloat/parseInt:
# "1.50abc" -> 1.5, "12px" -> 12, "abc" -> no value.
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Optional[float]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        """Build a Product from a store row, ignoring extra columns."""
        price = row.get("price")
        return cls(
            id=int(row["id"]),
            name=str(row.get("name") or ""),
            price=float(price) if price is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FormDraft:
    name: str = ""
    price: str = ""

    def to_record(self) -> Dict[str, Any]:
        """Return the insert payload; the price text is parsed but not validated."""
        return {"name": self.name, "price": parse_price(self.price)}


def parse_price(text: Optional[str]) -> Optional[float]:
    m = _FLOAT_PREFIX.match(text or "")
    if not m:
        return None
    value = float(m.group(1))
    # "1e999" overflows to inf, which JSON cannot carry; send null instead
    return value if math.isfinite(value) else None


def parse_id(text: Optional[str]) -> Optional[int]:
    m = _INT_PREFIX.match(text or "")
    return int(m.group(1)) if m else None


def format_price(price: Optional[float]) -> str:
    """Return price as "$1.50"; rows stored without a price render as "$-"."""
    if price is None:
        return "$-"
    return f"${price:.2f}"
