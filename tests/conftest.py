from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from product_catalog.store.results import StoreResult  # noqa: E402


class FakeHandle:
    def __init__(self, table: str, callback: Any) -> None:
        self.table = table
        self.callback = callback
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeStore:
    """In-memory RemoteStore double that replays queued results."""

    def __init__(self) -> None:
        self.table = "products"
        self.insert_results: List[StoreResult] = []
        self.fetch_results: List[StoreResult] = []
        self.inserted: List[Dict[str, Any]] = []
        self.fetched: List[Optional[int]] = []
        self.subscribed: List[FakeHandle] = []
        self.unsubscribed: List[FakeHandle] = []
        self.closed = False

    async def insert(self, record: Dict[str, Any]) -> StoreResult:
        self.inserted.append(record)
        return self.insert_results.pop(0)

    async def fetch_by_id(self, product_id: Optional[int]) -> StoreResult:
        self.fetched.append(product_id)
        return self.fetch_results.pop(0)

    async def subscribe_changes(self, table: str, callback: Any) -> FakeHandle:
        handle = FakeHandle(table, callback)
        self.subscribed.append(handle)
        return handle

    async def unsubscribe(self, handle: FakeHandle) -> None:
        self.unsubscribed.append(handle)
        await handle.close()

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()
