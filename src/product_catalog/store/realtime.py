"""Live change stream for one table via the Supabase Realtime websocket.

The server speaks the Phoenix channel protocol: every frame is a JSON object
with ``topic``, ``event``, ``payload`` and ``ref``. We join one topic with a
``postgres_changes`` filter, keep the socket alive with heartbeats, and hand
each change to a callback.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..logging import get_logger

LOG = get_logger("store-realtime")

HEARTBEAT_INTERVAL_SEC = 25.0
PROTOCOL_VSN = "1.0.0"


@dataclass
class ChangeEvent:
    type: str  # INSERT | UPDATE | DELETE
    schema: str
    table: str
    record: Dict[str, Any] = field(default_factory=dict)
    old_record: Dict[str, Any] = field(default_factory=dict)
    commit_timestamp: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]
Connector = Callable[[str], Awaitable[Any]]


def realtime_url(project_url: str, api_key: str) -> str:
    base = project_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    query = urlencode({"apikey": api_key, "vsn": PROTOCOL_VSN})
    return f"{base}/realtime/v1/websocket?{query}"


def _default_connect(url: str) -> Awaitable[Any]:
    return websockets.connect(url)


class ChangeSubscription:
    """One joined channel; acquire with ``open()``, release with ``close()``.

    ``close()`` is idempotent and safe after a failed ``open()``.
    """

    def __init__(
        self,
        *,
        project_url: str,
        api_key: str,
        table: str,
        callback: ChangeCallback,
        schema: str = "public",
        connect: Optional[Connector] = None,
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SEC,
    ) -> None:
        self.url = realtime_url(project_url, api_key)
        self.api_key = api_key
        self.schema = schema
        self.table = table
        self.callback = callback
        self.heartbeat_interval = heartbeat_interval
        self._connect = connect or _default_connect
        self._refs = itertools.count(1)
        self._join_ref: Optional[str] = None
        self._ws: Any = None
        self._tasks: list[asyncio.Task] = []
        self.joined = False
        self.closed = False

    @property
    def topic(self) -> str:
        return f"realtime:{self.schema}:{self.table}"

    @property
    def active(self) -> bool:
        return self._ws is not None and not self.closed

    def _next_ref(self) -> str:
        return str(next(self._refs))

    def join_message(self) -> Dict[str, Any]:
        self._join_ref = self._next_ref()
        return {
            "topic": self.topic,
            "event": "phx_join",
            "payload": {
                "config": {
                    "broadcast": {"ack": False, "self": False},
                    "presence": {"key": ""},
                    "postgres_changes": [
                        {"event": "*", "schema": self.schema, "table": self.table},
                    ],
                },
                "access_token": self.api_key,
            },
            "ref": self._join_ref,
            "join_ref": self._join_ref,
        }

    async def _send(self, message: Dict[str, Any]) -> None:
        await self._ws.send(json.dumps(message))

    async def open(self) -> bool:
        """Connect, join the topic and start the reader and heartbeat tasks.

        Returns False (and logs) when the socket cannot be opened; the
        subscription then stays inactive.
        """
        if self.closed:
            raise RuntimeError("subscription already closed")
        LOG.info(f"Subscribing to {self.topic}")
        try:
            self._ws = await self._connect(self.url)
            await self._send(self.join_message())
        except (OSError, WebSocketException) as e:
            LOG.error(f"Realtime connection for {self.topic} failed: {e}")
            self._ws = None
            return False
        self._tasks = [
            asyncio.create_task(self._reader(), name=f"realtime-reader:{self.topic}"),
            asyncio.create_task(self._heartbeat(), name=f"realtime-heartbeat:{self.topic}"),
        ]
        return True

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        LOG.info(f"Unsubscribing from {self.topic}")
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        if self._ws is None:
            return
        try:
            await self._send({
                "topic": self.topic,
                "event": "phx_leave",
                "payload": {},
                "ref": self._next_ref(),
                "join_ref": self._join_ref,
            })
        except (OSError, WebSocketException) as e:
            LOG.debug(f"phx_leave not delivered for {self.topic}: {e}")
        try:
            await self._ws.close()
        except (OSError, WebSocketException) as e:
            LOG.debug(f"Socket close for {self.topic} raised: {e}")
        self._ws = None
        self.joined = False

    def handle_message(self, raw: Any) -> Optional[ChangeEvent]:
        """Process one inbound frame; return the ChangeEvent it carried, if any."""
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            LOG.warning(f"Ignoring non-JSON realtime frame: {raw!r:.200}")
            return None
        if not isinstance(msg, dict) or msg.get("topic") != self.topic:
            return None
        event = msg.get("event")
        payload = msg.get("payload") or {}

        if event == "phx_reply" and msg.get("ref") == self._join_ref:
            status = payload.get("status")
            if status == "ok":
                self.joined = True
                LOG.info(f"Joined {self.topic}")
            else:
                LOG.error(f"Join {self.topic} rejected: {payload.get('response')}")
            return None
        if event == "system" and payload.get("status") == "error":
            LOG.error(f"Realtime error on {self.topic}: {payload.get('message')}")
            return None
        if event == "phx_error":
            LOG.error(f"Channel error on {self.topic}: {payload}")
            return None
        if event == "phx_close":
            LOG.info(f"Channel {self.topic} closed by server")
            return None
        if event != "postgres_changes":
            return None

        data = payload.get("data") or {}
        change = ChangeEvent(
            type=str(data.get("type") or data.get("eventType") or ""),
            schema=str(data.get("schema") or self.schema),
            table=str(data.get("table") or self.table),
            record=data.get("record") or {},
            old_record=data.get("old_record") or {},
            commit_timestamp=data.get("commit_timestamp"),
            raw=payload,
        )
        try:
            self.callback(change)
        except Exception:
            LOG.exception(f"Change callback for {self.topic} raised")
        return change

    async def _reader(self) -> None:
        try:
            async for raw in self._ws:
                self.handle_message(raw)
        except ConnectionClosed as e:
            LOG.warning(f"Realtime socket for {self.topic} closed: {e}")
        self.joined = False

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self._send({"topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": self._next_ref()})
            except ConnectionClosed:
                LOG.debug(f"Heartbeat stopped; socket for {self.topic} is closed")
                return
