from __future__ import annotations

"""Game connection adapter over a WebSocket bridge.

Purpose: The Minecraft protocol lives in a bridge sidecar. One WebSocket
connection to the bridge is one bot session: we send `create` with the server
coordinates, then receive lifecycle events and entity updates, and push
control and look inputs back.

How: A reader task parses bridge messages and fans events out to registered
handlers; a writer task drains the outgoing queue so the control API stays
synchronous and never blocks the loop.

Engineering notes: Keep JSON lean (minified); a session emits `end` at most
once; nothing is emitted after `close()`.

"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect

from .schemas import CONTROL_NAMES, EVENT_NAMES, Create


logger = logging.getLogger("patrolbot.bridge")


class BridgeError(Exception):
    """Error reported by the bridge or raised while talking to it."""


class Position(NamedTuple):
    x: float
    y: float
    z: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Position"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(float(data["x"]), float(data["y"]), float(data["z"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass
class Entity:
    position: Optional[Position] = None
    on_ground: bool = False


class BridgeSession:
    def __init__(self, url: str, create: Create) -> None:
        self.url = url
        self.username = create["username"]
        self.entity = Entity()
        self._create = create
        self._handlers: Dict[str, List[Callable[..., None]]] = {}
        self._outbox: asyncio.Queue[Optional[dict]] = asyncio.Queue()
        self._ws: Optional[ClientConnection] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self._ended = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on(self, event: str, handler: Callable[..., None]) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"unknown event: {event}")
        self._handlers.setdefault(event, []).append(handler)

    def open(self) -> None:
        """Start the connection task on the running loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def set_control_state(self, control: str, state: bool) -> None:
        if control not in CONTROL_NAMES:
            raise ValueError(f"unknown control: {control}")
        self._enqueue({"type": "control", "control": control, "state": bool(state)})

    def look(self, yaw: float, pitch: float, force: bool = False) -> None:
        self._enqueue({"type": "look", "yaw": float(yaw), "pitch": float(pitch), "force": bool(force)})

    def close(self) -> None:
        """Ask the bridge to quit and drop the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._outbox.put_nowait({"type": "quit"})
        self._outbox.put_nowait(None)
        if self._ws is None and self._task is not None:
            # still connecting; nothing to say goodbye on
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    def _enqueue(self, msg: dict) -> None:
        if self._closed:
            return
        self._outbox.put_nowait(msg)

    async def _run(self) -> None:
        try:
            async with connect(self.url) as ws:
                self._ws = ws
                logger.info("bridge connected: %s", self.url)
                await self._send_json(ws, self._create)
                writer = asyncio.create_task(self._drain(ws))
                try:
                    async for raw in ws:
                        self._on_message(raw)
                finally:
                    writer.cancel()
        except websockets.ConnectionClosedError as exc:
            logger.info("bridge connection lost: %s", exc)
        except (OSError, websockets.WebSocketException) as exc:
            self._emit("error", BridgeError(f"bridge connection failed: {exc}"))
        finally:
            self._ws = None
        self._end()

    async def _drain(self, ws: ClientConnection) -> None:
        try:
            while True:
                msg = await self._outbox.get()
                if msg is None:
                    await ws.close()
                    return
                await self._send_json(ws, msg)
        except websockets.ConnectionClosed:
            logger.debug("bridge closed while sending")

    def _on_message(self, raw: Any) -> None:
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("invalid JSON from bridge")
            return
        if not isinstance(msg, dict):
            logger.warning("unexpected bridge payload: %r", msg)
            return

        mtype = msg.get("type")
        if mtype == "entity":
            self.entity.position = Position.from_dict(msg.get("position"))
            self.entity.on_ground = bool(msg.get("onGround", False))
            return

        if mtype == "event":
            name = msg.get("event")
            if name == "kicked":
                self._emit("kicked", str(msg.get("reason", "")))
            elif name == "error":
                self._emit("error", BridgeError(str(msg.get("message", "unknown error"))))
            elif name == "end":
                self._end()
            elif name in EVENT_NAMES:
                self._emit(name)
            else:
                logger.debug("unhandled bridge event: %s", name)
            return

        logger.debug("unhandled message type: %s", mtype)

    def _end(self) -> None:
        if self._ended:
            return
        self._ended = True
        self._emit("end")

    def _emit(self, event: str, *args: Any) -> None:
        if self._closed:
            return
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(*args)
            except Exception:
                logger.exception("error in %s handler", event)

    async def _send_json(self, ws: ClientConnection, obj: dict) -> None:
        await ws.send(json.dumps(obj, separators=(",", ":")))


def connect_bridge(
    url: str,
    *,
    host: str,
    port: int,
    username: str,
    version: str,
    auth: str = "offline",
) -> BridgeSession:
    """Create a bridge session for one bot and start connecting."""
    create: Create = {
        "type": "create",
        "host": host,
        "port": port,
        "username": username,
        "version": version,
        "auth": auth,
    }
    session = BridgeSession(url, create)
    session.open()
    return session
