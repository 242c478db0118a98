from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Sequence

from ..config import ConfigurationError, StoreSettings, load_store_settings
from ..logging import get_logger
from ..store.remote import SupabaseStore
from ..store.results import Err, Ok
from ..ui.component import ProductListComponent

LOG = get_logger("cli-main")


def _add_store_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--url", help="Supabase project URL (defaults to SUPABASE_URL from env/.env)")
    p.add_argument("--key", help="Supabase anon key (defaults to SUPABASE_ANON_KEY from env/.env)")
    p.add_argument("--table", help="Products table name (default: products)")
    p.add_argument("--timeout", type=float, help="HTTP timeout in seconds for store requests")


def _settings_from_args(ns: argparse.Namespace) -> StoreSettings:
    # Read .env from the current working directory upwards
    return load_store_settings(
        os.getcwd(),
        url=ns.url,
        api_key=ns.key,
        table=ns.table,
        timeout=ns.timeout,
    )


def _print_state(component: ProductListComponent) -> None:
    print(json.dumps(component.snapshot(), ensure_ascii=False))


async def _run_add(settings: StoreSettings, name: str, price: str) -> int:
    store = SupabaseStore(settings)
    try:
        component = ProductListComponent(store, table=settings.table)
        component.set_name(name)
        component.set_price(price)
        result = await component.add_product()
        _print_state(component)
    finally:
        await store.aclose()
    return 0 if isinstance(result, Ok) else 1


async def _run_search(settings: StoreSettings, product_id: str) -> int:
    store = SupabaseStore(settings)
    try:
        component = ProductListComponent(store, table=settings.table)
        component.set_search_id(product_id)
        result = await component.search_product()
        _print_state(component)
    finally:
        await store.aclose()
    return 1 if isinstance(result, Err) else 0


async def _run_watch(settings: StoreSettings) -> int:
    store = SupabaseStore(settings)
    try:
        async with ProductListComponent(store, table=settings.table):
            LOG.info("Press Ctrl+C to stop.")
            await asyncio.Event().wait()
    finally:
        await store.aclose()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="product-catalog",
        description="Product list screen backed by a Supabase table.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the product screen and JSON API.")
    _add_store_args(serve)
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8002)
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    serve.add_argument("--log-level", default="info")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )

    def _serve(ns: argparse.Namespace) -> int:
        from ..frontend.app import create_app
        import uvicorn

        app = create_app(_settings_from_args(ns), allow_origins=ns.allow_origins)
        uvicorn.run(
            app,
            host=ns.host,
            port=ns.port,
            reload=ns.reload,
            log_level=ns.log_level,
        )
        return 0

    serve.set_defaults(handler=_serve)

    add = subparsers.add_parser("add", help="Insert one product and print the resulting list.")
    _add_store_args(add)
    add.add_argument("--name", required=True)
    add.add_argument("--price", required=True, help="Price text, parsed leniently (e.g. 1.50)")
    add.set_defaults(handler=lambda ns: asyncio.run(_run_add(_settings_from_args(ns), ns.name, ns.price)))

    search = subparsers.add_parser("search", help="Look up one product by id and print the resulting list.")
    _add_store_args(search)
    search.add_argument("--id", required=True, dest="product_id")
    search.set_defaults(handler=lambda ns: asyncio.run(_run_search(_settings_from_args(ns), ns.product_id)))

    watch = subparsers.add_parser("watch", help="Log change notifications for the products table.")
    _add_store_args(watch)

    def _watch(ns: argparse.Namespace) -> int:
        try:
            return asyncio.run(_run_watch(_settings_from_args(ns)))
        except KeyboardInterrupt:
            LOG.info("Watch interrupted by user. Exiting.")
            return 0

    watch.set_defaults(handler=_watch)

    args = parser.parse_args(provided)
    try:
        code = args.handler(args)
    except ConfigurationError as e:
        LOG.error(str(e))
        return 2
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
