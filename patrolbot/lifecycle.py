from __future__ import annotations

"""Connection lifecycle for the patrol bot.

Purpose: Own the connect/disconnect/reconnect state machine, react to session
events and start or stop the patrol accordingly.

How: Each new session gets every event wired to a dispatch table keyed by the
event name. Events from a session that has since been replaced are ignored.
Every failure is handled the same way: stop, mark disconnected, reconnect
after a fixed delay, forever.

"""

import enum
import logging
from typing import Any, Callable, Dict, Optional

from .bridge import Position
from .motion import MotionController
from .schemas import EVENT_NAMES
from .timers import Timeout


logger = logging.getLogger("patrolbot.lifecycle")


RESPAWN_DELAY_SECONDS = 2.0
RECONNECT_DELAY_SECONDS = 5.0


class ConnectionStatus(str, enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"


class LifecycleState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDLE = "idle"
    PATROLLING = "patrolling"
    RECONNECTING = "reconnecting"


class LifecycleManager:
    def __init__(
        self,
        settings: Any,
        session_factory: Callable[..., Any],
        loop: Any,
        *,
        jump_chance: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.settings = settings
        self._factory = session_factory
        self._loop = loop
        self._jump_chance = jump_chance
        self.state = LifecycleState.DISCONNECTED
        self.status = ConnectionStatus.DISCONNECTED
        self.origin: Optional[Position] = None
        self.session: Optional[Any] = None
        self.motion: Optional[MotionController] = None
        self._reconnect_timer: Optional[Timeout] = None
        self._respawn_timer: Optional[Timeout] = None
        self._handlers: Dict[str, Callable[..., None]] = {
            "login": self._on_login,
            "spawn": self._on_spawn,
            "death": self._on_death,
            "kicked": self._on_kicked,
            "end": self._on_end,
            "error": self._on_error,
        }

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None and self._reconnect_timer.active

    def start(self) -> None:
        """Open a fresh session to the configured server."""
        self._cancel_reconnect()
        self._cancel_respawn()
        self._stop_motion()
        self._close_session()
        s = self.settings
        logger.info(
            "creating bot %s for %s:%s (version %s)",
            s.username,
            s.server_host,
            s.server_port,
            s.version,
        )
        session = self._factory(
            host=s.server_host,
            port=s.server_port,
            username=s.username,
            version=s.version,
            auth=s.auth,
        )
        self.session = session
        self.motion = MotionController(session, self._loop, jump_chance=self._jump_chance)
        for event in EVENT_NAMES:
            session.on(event, self._bind(session, event))
        self.state = LifecycleState.CONNECTING

    def stop(self) -> None:
        """Shut down: cancel every timer and drop the session."""
        self._cancel_reconnect()
        self._cancel_respawn()
        self._stop_motion()
        self._close_session()
        self.status = ConnectionStatus.DISCONNECTED
        self.state = LifecycleState.DISCONNECTED

    def schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        logger.info("reconnecting in %.0f seconds...", RECONNECT_DELAY_SECONDS)
        self._reconnect_timer = Timeout(self._loop, RECONNECT_DELAY_SECONDS, self._reconnect)
        self.status = ConnectionStatus.RECONNECTING
        self.state = LifecycleState.RECONNECTING

    def handle_event(self, session: Any, event: str, *args: Any) -> None:
        if session is not self.session:
            logger.debug("ignoring %s from stale session", event)
            return
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("unhandled event: %s", event)
            return
        handler(*args)

    # Event handlers

    def _on_login(self) -> None:
        logger.info("bot logged in as %s", self.settings.username)
        self.status = ConnectionStatus.CONNECTED
        self.state = LifecycleState.IDLE

    def _on_spawn(self) -> None:
        logger.info("bot spawned in the world")
        if not self._start_patrol():
            logger.warning("spawned without a known position; waiting")

    def _on_death(self) -> None:
        logger.warning("bot died, waiting to respawn...")
        self._stop_motion()
        self._cancel_respawn()
        self._respawn_timer = Timeout(self._loop, RESPAWN_DELAY_SECONDS, self._on_respawn)

    def _on_respawn(self) -> None:
        self._respawn_timer = None
        if not self.connected:
            return
        if self._start_patrol():
            logger.info("respawned, restarting movement")

    def _on_kicked(self, reason: Any = None) -> None:
        logger.warning("bot was kicked: %s", reason)
        self._disconnected()

    def _on_end(self) -> None:
        logger.warning("connection ended")
        self._disconnected()

    def _on_error(self, err: Any = None) -> None:
        logger.error("bot error: %s", err)
        self._disconnected()

    # Helpers

    def _bind(self, session: Any, event: str) -> Callable[..., None]:
        def _handler(*args: Any) -> None:
            self.handle_event(session, event, *args)

        return _handler

    def _start_patrol(self) -> bool:
        position = self.session.entity.position if self.session is not None else None
        if position is None or self.motion is None:
            return False
        self.origin = Position(position.x, position.y, position.z)
        logger.info(
            "starting position: x=%.2f y=%.2f z=%.2f",
            self.origin.x,
            self.origin.y,
            self.origin.z,
        )
        self.motion.start(self.origin)
        self.state = LifecycleState.PATROLLING
        return True

    def _disconnected(self) -> None:
        self.status = ConnectionStatus.DISCONNECTED
        self.state = LifecycleState.DISCONNECTED
        self._stop_motion()
        self._cancel_respawn()
        self.schedule_reconnect()

    def _reconnect(self) -> None:
        logger.info("attempting to reconnect...")
        self.start()

    def _stop_motion(self) -> None:
        if self.motion is not None:
            self.motion.stop()

    def _close_session(self) -> None:
        session, self.session = self.session, None
        self.motion = None
        if session is not None:
            session.close()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _cancel_respawn(self) -> None:
        if self._respawn_timer is not None:
            self._respawn_timer.cancel()
            self._respawn_timer = None
