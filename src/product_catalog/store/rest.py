from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from ..config import StoreSettings
from ..domain.models import Product
from ..logging import get_logger
from .results import Err, NotFound, Ok, StoreResult


class ProductRestClient:
    """Thin async client for the PostgREST endpoint of a Supabase project.

    Only implements the subset the product screen uses: insert one row and
    fetch one row by primary key. Failures are returned as ``Err`` and never
    raised; there are no retries.
    """

    def __init__(
        self,
        settings: StoreSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.base = f"{settings.url.rstrip('/')}/rest/v1"
        self.log = get_logger("store-rest")
        headers = {
            "apikey": settings.api_key,
            "Authorization": f"Bearer {settings.api_key}",
            "Accept": "application/json",
        }
        if settings.schema != "public":
            headers["Accept-Profile"] = settings.schema
            headers["Content-Profile"] = settings.schema
        self.s = httpx.AsyncClient(
            base_url=self.base,
            headers=headers,
            timeout=settings.timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.s.aclose()

    # ---------- helpers ----------
    def _path(self, table: Optional[str] = None) -> str:
        return f"/{table or self.settings.table}"

    def _error_from_response(self, r: httpx.Response) -> Err:
        reason = r.reason_phrase or "request failed"
        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            reason = str(body.get("message") or body.get("error") or reason)
            code = body.get("code")
            if code:
                reason = f"{code}: {reason}"
        return Err(reason=reason, status_code=r.status_code)

    def _rows(self, r: httpx.Response) -> List[Dict[str, Any]]:
        data = r.json()
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [row for row in data if isinstance(row, dict)]
        return []

    # ---------- rows ----------
    async def insert(self, record: Dict[str, Any], *, table: Optional[str] = None) -> StoreResult:
        """Insert one row and return the created row(s) with server-assigned ids."""
        self.log.info(f"POST {self._path(table)}: {record!r}")
        try:
            r = await self.s.post(
                self._path(table),
                json=[record],
                headers={"Prefer": "return=representation"},
            )
        except httpx.HTTPError as e:
            self.log.warning(f"insert failed: {e}")
            return Err(reason=str(e) or e.__class__.__name__)
        except (ValueError, TypeError) as e:
            # Record could not be encoded as JSON; nothing was sent
            self.log.warning(f"insert payload not encodable: {e}")
            return Err(reason=f"invalid insert payload: {e}")
        if r.is_error:
            err = self._error_from_response(r)
            self.log.warning(f"insert rejected: {err}")
            return err
        try:
            rows = tuple(Product.from_row(row) for row in self._rows(r))
        except (ValueError, KeyError, TypeError) as e:
            self.log.warning(f"insert returned malformed rows: {e}")
            return Err(reason=f"malformed row in insert response: {e}", status_code=r.status_code)
        self.log.debug(f"Inserted ids={[p.id for p in rows]}")
        return Ok(rows)

    async def fetch_by_id(self, product_id: Optional[int], *, table: Optional[str] = None) -> StoreResult:
        """Return ``Ok`` with the single matching row, ``NotFound`` when none matches."""
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            self.log.warning(f"fetch_by_id called with invalid id {product_id!r}")
            return Err(reason=f"invalid input syntax for id: {product_id!r}")
        params = {"select": "*", "id": f"eq.{product_id}"}
        try:
            r = await self.s.get(self._path(table), params=params)
        except httpx.HTTPError as e:
            self.log.warning(f"fetch_by_id {product_id} failed: {e}")
            return Err(reason=str(e) or e.__class__.__name__)
        if r.is_error:
            err = self._error_from_response(r)
            self.log.warning(f"fetch_by_id {product_id} rejected: {err}")
            return err
        try:
            rows = self._rows(r)
            if not rows:
                return NotFound()
            return Ok((Product.from_row(rows[0]),))
        except (ValueError, KeyError, TypeError) as e:
            self.log.warning(f"fetch_by_id {product_id} returned malformed row: {e}")
            return Err(reason=f"malformed row in fetch response: {e}", status_code=r.status_code)
