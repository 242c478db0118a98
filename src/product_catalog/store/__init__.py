"""Client side of the remote product store.

Modules:
- results: tagged Ok / NotFound / Err results
- rest: insert and fetch-by-id over PostgREST
- realtime: postgres_changes subscription over the Realtime websocket
- remote: RemoteStore protocol and the Supabase-backed implementation
"""

from .realtime import ChangeEvent, ChangeSubscription
from .remote import RemoteStore, SubscriptionHandle, SupabaseStore
from .rest import ProductRestClient
from .results import Err, NotFound, Ok, StoreResult

__all__ = [
    "ChangeEvent",
    "ChangeSubscription",
    "Err",
    "NotFound",
    "Ok",
    "ProductRestClient",
    "RemoteStore",
    "StoreResult",
    "SubscriptionHandle",
    "SupabaseStore",
]
