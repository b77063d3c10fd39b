from __future__ import annotations
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[object], None]


class Observable:
    """Minimal subscribe/notify container; listeners receive the container itself."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("State listener failed")
