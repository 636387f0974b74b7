from __future__ import annotations

"""Patrol bot process.

Purpose: Wire settings, the bridge-backed lifecycle manager and the health
endpoint together, then run until SIGINT/SIGTERM.

How: One event loop; the manager opens the first session immediately and
reconnects on its own afterwards. Shutdown stops the manager (timers,
session) before closing the health server.

"""

import asyncio
import functools
import logging
import signal
from typing import Optional

from websockets.asyncio.server import Server

from .bridge import connect_bridge
from .config import Settings, configure_logging, load_settings
from .health import HealthReporter
from .lifecycle import LifecycleManager


logger = logging.getLogger("patrolbot.server")


class PatrolBotApp:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or load_settings()
        self.manager: Optional[LifecycleManager] = None
        self.health: Optional[HealthReporter] = None
        self._http: Optional[Server] = None
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        configure_logging(self.settings.log_level)
        s = self.settings
        logger.info(
            "starting bot %s -> %s:%s via %s",
            s.username,
            s.server_host,
            s.server_port,
            s.bridge_url,
        )

        loop = asyncio.get_running_loop()
        factory = functools.partial(connect_bridge, s.bridge_url)
        self.manager = LifecycleManager(s, factory, loop)
        self.health = HealthReporter(self.manager, s.username)
        self._http = await self.health.serve(s.http_host, s.http_port)

        self.manager.start()
        try:
            await self._shutdown_event.wait()
        finally:
            await self._shutdown()

    async def stop(self) -> None:
        self._shutdown_event.set()

    async def _shutdown(self) -> None:
        session = self.manager.session if self.manager is not None else None
        if self.manager is not None:
            self.manager.stop()
        if session is not None:
            await session.wait_closed()
        if self._http is not None:
            self._http.close()
            await self._http.wait_closed()
        logger.info("stopped")


def main() -> None:
    app = PatrolBotApp()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _signal_handler() -> None:
        logger.info("shutdown requested")
        loop.create_task(app.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Signals not supported on some platforms (e.g., Windows)
            pass

    try:
        loop.run_until_complete(app.start())
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


if __name__ == "__main__":
    main()
