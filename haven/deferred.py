from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    SCHEDULED = "scheduled"
    FIRED = "fired"
    CANCELLED = "cancelled"


class DeferredTask:
    """Run `callback` once after `delay` seconds unless cancelled first.

    Only the first of fire/cancel has an effect; later calls are no-ops.
    """

    def __init__(self, delay: float, callback: Callable[[], None],
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.delay = delay
        self._callback = callback
        self.state = TaskState.SCHEDULED
        loop = loop or asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire)

    @property
    def pending(self) -> bool:
        return self.state is TaskState.SCHEDULED

    def _fire(self) -> None:
        if self.state is not TaskState.SCHEDULED:
            return
        self.state = TaskState.FIRED
        try:
            self._callback()
        except Exception:
            logger.exception("Deferred task callback failed")

    def cancel(self) -> bool:
        if self.state is not TaskState.SCHEDULED:
            return False
        self.state = TaskState.CANCELLED
        self._handle.cancel()
        return True

    def fire_now(self) -> bool:
        """Run the callback immediately instead of waiting for the timer."""
        if self.state is not TaskState.SCHEDULED:
            return False
        self._handle.cancel()
        self._fire()
        return True
