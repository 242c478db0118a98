from __future__ import annotations

import contextlib
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import parse_qs

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.routing import Route

from ..config import StoreSettings
from ..logging import get_logger
from ..store.remote import RemoteStore, SupabaseStore
from ..ui.component import ProductListComponent
from ..ui.render import render_page


LOG = get_logger("frontend")

_DRAFT_FIELDS = ("name", "price", "search_id")


async def _form_fields(request: Request) -> Dict[str, str]:
    body = (await request.body()).decode("utf-8", errors="replace")
    parsed = parse_qs(body, keep_blank_values=True)
    return {k: v[0] for k, v in parsed.items() if v}


async def _json_fields(request: Request) -> Dict[str, Any]:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        data = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Body must be JSON") from exc
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    return data


def _apply_drafts(component: ProductListComponent, fields: Dict[str, Any]) -> None:
    for key in _DRAFT_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        text = "" if value is None else str(value)
        if key == "name":
            component.set_name(text)
        elif key == "price":
            component.set_price(text)
        else:
            component.set_search_id(text)


def create_app(
    settings: Optional[StoreSettings] = None,
    *,
    store: Optional[RemoteStore] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app hosting one product screen.

    The screen's component is mounted for the app's lifetime, so the change
    subscription opens on startup and is released on shutdown. Pass ``store``
    to use an existing RemoteStore; otherwise one is built from ``settings``.
    """

    if store is None:
        if settings is None:
            raise ValueError("create_app needs either settings or store")
        store = SupabaseStore(settings)
        owned_store: Optional[SupabaseStore] = store
    else:
        owned_store = None
    table = settings.table if settings is not None else getattr(store, "table", "products")
    component = ProductListComponent(store, table=table)

    @contextlib.asynccontextmanager
    async def lifespan(_: Starlette) -> AsyncIterator[None]:
        LOG.info(f"Mounting product screen for table '{table}'")
        try:
            async with component:
                yield
        finally:
            if owned_store is not None:
                await owned_store.aclose()
            LOG.info("Product screen unmounted")

    # ---------- screen ----------
    async def page(_: Request) -> HTMLResponse:
        return HTMLResponse(render_page(component.snapshot()))

    def _back_to_page() -> RedirectResponse:
        return RedirectResponse("/", status_code=303)

    async def form_add(request: Request) -> RedirectResponse:
        _apply_drafts(component, await _form_fields(request))
        await component.add_product()
        return _back_to_page()

    async def form_search(request: Request) -> RedirectResponse:
        _apply_drafts(component, await _form_fields(request))
        await component.search_product()
        return _back_to_page()

    async def form_delete(request: Request) -> RedirectResponse:
        component.delete_product(int(request.path_params["product_id"]))
        return _back_to_page()

    # ---------- JSON API ----------
    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "mounted": component.mounted, "table": table})

    async def state(_: Request) -> JSONResponse:
        return JSONResponse(component.snapshot())

    async def drafts(request: Request) -> JSONResponse:
        _apply_drafts(component, await _json_fields(request))
        return JSONResponse(component.snapshot())

    async def add_product(request: Request) -> JSONResponse:
        _apply_drafts(component, await _json_fields(request))
        await component.add_product()
        return JSONResponse(component.snapshot())

    async def search_product(request: Request) -> JSONResponse:
        _apply_drafts(component, await _json_fields(request))
        await component.search_product()
        return JSONResponse(component.snapshot())

    async def delete_product(request: Request) -> JSONResponse:
        component.delete_product(int(request.path_params["product_id"]))
        return JSONResponse(component.snapshot())

    routes = [
        Route("/", page, methods=["GET"]),
        Route("/actions/add", form_add, methods=["POST"]),
        Route("/actions/search", form_search, methods=["POST"]),
        Route("/actions/delete/{product_id:int}", form_delete, methods=["POST"]),
        Route("/api/health", health, methods=["GET"]),
        Route("/api/state", state, methods=["GET"]),
        Route("/api/drafts", drafts, methods=["PUT"]),
        Route("/api/products", add_product, methods=["POST"]),
        Route("/api/search", search_product, methods=["POST"]),
        Route("/api/products/{product_id:int}", delete_product, methods=["DELETE"]),
    ]

    app = Starlette(debug=False, routes=routes, lifespan=lifespan)
    app.state.component = component

    origins = allow_origins or ["http://localhost:8002", "http://127.0.0.1:8002"]
    if "*" in origins:
        cors_allow_origins = ["*"]
    else:
        cors_allow_origins = origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


__all__ = ["create_app"]
