"""State owner for the product screen.

One ``ProductListComponent`` backs one screen. It holds the list of products
shown, the add-product form draft and the search draft, and turns each user
action into exactly one store call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..domain.models import FormDraft, Product, parse_id
from ..logging import get_logger
from ..store.realtime import ChangeEvent
from ..store.remote import RemoteStore, SubscriptionHandle
from ..store.results import Err, NotFound, Ok, StoreResult

LOG = get_logger("ui-component")

NOT_FOUND_MESSAGE = "This product with the specified ID does not exist."


@dataclass
class ComponentState:
    products: List[Product] = field(default_factory=list)
    form: FormDraft = field(default_factory=FormDraft)
    search_id: str = ""
    search_message: str = ""


class ProductListComponent:
    """Product list screen: add, search by id, delete locally, watch changes.

    Store failures are logged and never raised; only the "not found" search
    outcome is shown to the user. Deletes only touch the local list.

    Actions are not serialized: overlapping calls complete in any order and
    the last one to finish wins. A call that resolves after ``unmount()`` does
    not write state.
    """

    def __init__(self, store: RemoteStore, *, table: str = "products") -> None:
        self.store = store
        self.table = table
        self.state = ComponentState()
        self._subscription: Optional[SubscriptionHandle] = None
        self._generation = 0
        self.mounted = False

    # ---------- lifecycle ----------
    async def mount(self) -> None:
        if self.mounted:
            await self.unmount()
        self._subscription = await self.store.subscribe_changes(self.table, self._on_change)
        self.mounted = True
        LOG.debug(f"Mounted (generation {self._generation})")

    async def unmount(self) -> None:
        if not self.mounted:
            return
        handle, self._subscription = self._subscription, None
        self.mounted = False
        self._generation += 1
        if handle is not None:
            await self.store.unsubscribe(handle)
        LOG.debug("Unmounted; subscription released")

    async def __aenter__(self) -> "ProductListComponent":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.unmount()

    def _on_change(self, change: ChangeEvent) -> None:
        # Notifications are logged only; the list is not refreshed from them.
        LOG.info(f"Change received! {change.type} on {change.schema}.{change.table}: {change.raw}")

    def _stale(self, generation: int, action: str) -> bool:
        if generation != self._generation:
            LOG.debug(f"Discarding {action} result that resolved after unmount")
            return True
        return False

    # ---------- text inputs ----------
    def set_name(self, text: str) -> None:
        self.state.form.name = text

    def set_price(self, text: str) -> None:
        self.state.form.price = text

    def set_search_id(self, text: str) -> None:
        self.state.search_id = text

    # ---------- actions ----------
    async def add_product(self) -> StoreResult:
        """Insert the form draft; the draft is cleared whatever the outcome."""
        generation = self._generation
        record = self.state.form.to_record()
        LOG.info(f"Adding product {record!r}")
        try:
            result = await self.store.insert(record)
            if self._stale(generation, "insert"):
                return result
            if isinstance(result, Err):
                LOG.error(f"Add product failed: {result}")
            elif isinstance(result, Ok):
                self.state.products.extend(result.rows)
            return result
        finally:
            if generation == self._generation:
                self.state.form = FormDraft()

    async def search_product(self) -> StoreResult:
        generation = self._generation
        product_id = parse_id(self.state.search_id)
        LOG.info(f"Searching product id={product_id!r} (input {self.state.search_id!r})")
        try:
            result = await self.store.fetch_by_id(product_id)
            if self._stale(generation, "search"):
                return result
            if isinstance(result, Err):
                LOG.error(f"Search product failed: {result}")
            elif isinstance(result, Ok):
                self.state.products.extend(result.rows[:1])
                self.state.search_message = ""
            elif isinstance(result, NotFound):
                self.state.search_message = NOT_FOUND_MESSAGE
            return result
        finally:
            if generation == self._generation:
                self.state.search_id = ""

    def delete_product(self, product_id: int) -> bool:
        """Drop the first entry with this id from the list. Local only."""
        for i, product in enumerate(self.state.products):
            if product.id == product_id:
                del self.state.products[i]
                LOG.info(f"Removed product id={product_id} from the list")
                return True
        LOG.debug(f"delete_product: id={product_id} not in the list")
        return False

    def snapshot(self) -> Dict[str, Any]:
        return {
            "products": [p.to_dict() for p in self.state.products],
            "form": {"name": self.state.form.name, "price": self.state.form.price},
            "search_id": self.state.search_id,
            "search_message": self.state.search_message,
            "mounted": self.mounted,
        }
