"""Tagged results returned by every store call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..domain.models import Product


@dataclass(frozen=True)
class Ok:
    rows: Tuple[Product, ...]


@dataclass(frozen=True)
class NotFound:
    """The query succeeded but matched no row."""


@dataclass(frozen=True)
class Err:
    reason: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.reason} (HTTP {self.status_code})"
        return self.reason


StoreResult = Union[Ok, NotFound, Err]
