from __future__ import annotations

"""Timer handles on top of the asyncio loop.

Purpose: `Timeout` and `Interval` mirror one-shot and periodic timers. Both
are driven by `loop.call_later`, so `cancel()` takes effect synchronously:
once it returns the callback will not run again.

"""

import asyncio
import logging
from typing import Any, Callable, Optional


logger = logging.getLogger("patrolbot.timers")


class Timeout:
    """One-shot timer. Fires `callback` once after `delay` seconds."""

    def __init__(self, loop: Any, delay: float, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(delay, self._fire)

    @property
    def active(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class Interval:
    """Periodic timer. Fires `callback` every `period` seconds until cancelled.

    The next run is armed before the callback executes, so a callback that
    raises does not stop the interval; the error is logged.
    """

    def __init__(self, loop: Any, period: float, callback: Callable[[], None]) -> None:
        self._loop = loop
        self._period = period
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(period, self._fire)

    @property
    def active(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = self._loop.call_later(self._period, self._fire)
        try:
            self._callback()
        except Exception:
            logger.exception("interval callback failed")
