"""
Minimal observable value.

Listeners subscribe explicitly and get back an unsubscribe callable. A failing
listener is logged and does not stop delivery to the others.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Observable(Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._listeners: List[Listener[T]] = []

    @property
    def value(self) -> T:
        return self._value

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener[T], *, replay: bool = True) -> Callable[[], None]:
        """Register `listener`; with `replay` it is called with the current value first."""

        self._listeners.append(listener)
        if replay:
            self._notify(listener, self._value)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, value: T) -> None:
        self._value = value
        for listener in list(self._listeners):
            self._notify(listener, value)

    def _notify(self, listener: Listener[T], value: T) -> None:
        try:
            listener(value)
        except Exception:
            logger.exception("Observable listener failed", extra={"listener": repr(listener)})


__all__ = ["Observable", "Listener"]
