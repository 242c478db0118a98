from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import httpx

from ..config import StoreSettings
from ..logging import get_logger
from .realtime import ChangeCallback, ChangeSubscription, Connector
from .rest import ProductRestClient
from .results import StoreResult

LOG = get_logger("store-remote")


class SubscriptionHandle(Protocol):
    async def close(self) -> None: ...


class RemoteStore(Protocol):
    """The three calls the product screen makes against its backend."""

    async def insert(self, record: Dict[str, Any]) -> StoreResult: ...

    async def fetch_by_id(self, product_id: Optional[int]) -> StoreResult: ...

    async def subscribe_changes(self, table: str, callback: ChangeCallback) -> SubscriptionHandle: ...

    async def unsubscribe(self, handle: SubscriptionHandle) -> None: ...


class SupabaseStore:
    """RemoteStore backed by a Supabase project (PostgREST + Realtime)."""

    def __init__(
        self,
        settings: StoreSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connect: Optional[Connector] = None,
    ) -> None:
        self.settings = settings
        self.rest = ProductRestClient(settings, transport=transport)
        self._connect = connect

    @property
    def table(self) -> str:
        return self.settings.table

    async def insert(self, record: Dict[str, Any]) -> StoreResult:
        return await self.rest.insert(record)

    async def fetch_by_id(self, product_id: Optional[int]) -> StoreResult:
        return await self.rest.fetch_by_id(product_id)

    async def subscribe_changes(self, table: str, callback: ChangeCallback) -> ChangeSubscription:
        sub = ChangeSubscription(
            project_url=self.settings.url,
            api_key=self.settings.api_key,
            table=table,
            schema=self.settings.schema,
            callback=callback,
            connect=self._connect,
        )
        await sub.open()
        return sub

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        await handle.close()

    async def aclose(self) -> None:
        LOG.debug("Closing HTTP session")
        await self.rest.aclose()
