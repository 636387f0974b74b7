from __future__ import annotations

"""Liveness endpoint.

Purpose: Answer `GET /health` with the connection status as JSON (200 when the
bot is connected, 503 otherwise) and 404 for every other path.

How: Served by the websockets server's `process_request` hook, which lets us
reply to plain HTTP requests before any WebSocket upgrade is attempted. No
WebSocket connection is ever accepted on this port.

"""

import json
import logging
import time
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Callable, Dict
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response


logger = logging.getLogger("patrolbot.health")

_PROCESS_STARTED = time.monotonic()


def _iso_now() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _response(status: HTTPStatus, body: bytes, content_type: str) -> Response:
    headers = Headers([
        ("Content-Type", content_type),
        ("Content-Length", str(len(body))),
        ("Connection", "close"),
    ])
    return Response(status.value, status.phrase, headers, body)


class HealthReporter:
    def __init__(
        self,
        manager: Any,
        bot_name: str,
        *,
        clock: Callable[[], float] = time.monotonic,
        started: float = _PROCESS_STARTED,
    ) -> None:
        self.manager = manager
        self.bot_name = bot_name
        self._clock = clock
        self._started = started

    def snapshot(self) -> Dict[str, Any]:
        connected = bool(self.manager.connected)
        return {
            "status": "connected" if connected else "disconnected",
            "bot": self.bot_name,
            "uptime": max(self._clock() - self._started, 0.0),
            "timestamp": _iso_now(),
        }

    def respond(self, path: str) -> Response:
        if urlsplit(path).path != "/health":
            return _response(HTTPStatus.NOT_FOUND, b"Not Found", "text/plain")
        body = self.snapshot()
        status = HTTPStatus.OK if body["status"] == "connected" else HTTPStatus.SERVICE_UNAVAILABLE
        return _response(status, json.dumps(body, indent=2).encode("utf-8"), "application/json")

    def process_request(self, connection: ServerConnection, request: Request) -> Response:
        return self.respond(request.path)

    async def serve(self, host: str, port: int) -> Server:
        server = await serve(_never_upgrade, host, port, process_request=self.process_request)
        logger.info("health check server listening on %s:%s", host, port)
        return server


async def _never_upgrade(websocket: ServerConnection) -> None:
    await websocket.close()
