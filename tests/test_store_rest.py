from __future__ import annotations

import asyncio
import json
from typing import Callable, List

import httpx

from product_catalog.config import StoreSettings
from product_catalog.domain.models import Product
from product_catalog.store.rest import ProductRestClient
from product_catalog.store.results import Err, NotFound, Ok

SETTINGS = StoreSettings(url="https://demo.supabase.co", api_key="anon-key", timeout=5.0)


def _client(handler: Callable[[httpx.Request], httpx.Response], settings: StoreSettings = SETTINGS) -> ProductRestClient:
    return ProductRestClient(settings, transport=httpx.MockTransport(handler))


def _run(client: ProductRestClient, call):
    async def wrapper():
        try:
            return await call(client)
        finally:
            await client.aclose()

    return asyncio.run(wrapper())


def test_insert_posts_record_and_returns_created_rows() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json=[{"id": 7, "name": "Pen", "price": 1.5, "created_at": "2024-01-01T00:00:00"}])

    client = _client(handler)
    result = _run(client, lambda c: c.insert({"name": "Pen", "price": 1.5}))

    assert result == Ok((Product(id=7, name="Pen", price=1.5),))
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/products"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"
    assert request.headers["Prefer"] == "return=representation"
    assert "Content-Profile" not in request.headers
    assert json.loads(request.content) == [{"name": "Pen", "price": 1.5}]


def test_insert_maps_postgrest_error_to_err() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"code": "23502", "message": 'null value in column "price" violates not-null constraint'},
        )

    client = _client(handler)
    result = _run(client, lambda c: c.insert({"name": "Pen", "price": None}))

    assert isinstance(result, Err)
    assert result.status_code == 400
    assert result.reason.startswith("23502: null value")


def test_insert_transport_failure_is_err() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    result = _run(client, lambda c: c.insert({"name": "Pen", "price": 1.5}))

    assert result == Err("connection refused")


def test_fetch_by_id_filters_on_primary_key() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 7, "name": "Pen", "price": "1.50"}])

    client = _client(handler)
    result = _run(client, lambda c: c.fetch_by_id(7))

    assert result == Ok((Product(id=7, name="Pen", price=1.5),))
    params = seen[0].url.params
    assert params["id"] == "eq.7"
    assert params["select"] == "*"


def test_fetch_by_id_empty_result_is_not_found() -> None:
    client = _client(lambda request: httpx.Response(200, json=[]))
    result = _run(client, lambda c: c.fetch_by_id(404))

    assert result == NotFound()


def test_fetch_by_id_rejects_missing_id_without_request() -> None:
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    client = _client(handler)
    result = _run(client, lambda c: c.fetch_by_id(None))

    assert isinstance(result, Err)
    assert calls == []


def test_fetch_by_id_server_error_is_err() -> None:
    client = _client(lambda request: httpx.Response(503, text="upstream unavailable"))
    result = _run(client, lambda c: c.fetch_by_id(7))

    assert isinstance(result, Err)
    assert result.status_code == 503


def test_non_public_schema_sets_profile_headers() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    settings = StoreSettings(url="https://demo.supabase.co", api_key="k", table="items", schema="shop")
    client = _client(handler, settings)
    _run(client, lambda c: c.fetch_by_id(1))

    assert seen[0].url.path == "/rest/v1/items"
    assert seen[0].headers["Accept-Profile"] == "shop"


def test_insert_unencodable_record_is_err_without_request() -> None:
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(201, json=[])

    client = _client(handler)
    result = _run(client, lambda c: c.insert({"name": "Pen", "price": float("inf")}))

    assert isinstance(result, Err)
    assert result.reason.startswith("invalid insert payload")
    assert calls == []
