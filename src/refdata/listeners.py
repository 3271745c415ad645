"""Reload listeners and the hub that notifies them."""

from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Iterable, List, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ResourceListener(Protocol):
    """Observer notified once after every completed full reload."""

    def on_reload(self) -> Any:
        ...


class FunctionListener:
    """Adapt a zero-argument callable to :class:`ResourceListener`."""

    __slots__ = ("func",)

    def __init__(self, func: Callable[[], Any]) -> None:
        self.func = func

    def on_reload(self) -> Any:
        return self.func()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FunctionListener) and other.func == self.func

    def __hash__(self) -> int:
        return hash(self.func)

    def __repr__(self) -> str:
        return f"FunctionListener({getattr(self.func, '__qualname__', self.func)!r})"


def as_listener(obj: Any) -> ResourceListener:
    if isinstance(obj, type) and hasattr(obj, "on_reload"):
        obj = obj()
    if isinstance(obj, ResourceListener):
        return obj
    if callable(obj):
        return FunctionListener(obj)
    raise TypeError(f"Not a resource listener: {obj!r}")


class ListenerHub:
    """Ordered, duplicate-free set of listeners."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._listeners: list[ResourceListener] = []

    def add(self, listener: Any) -> ResourceListener:
        listener = as_listener(listener)
        with self._lock:
            if not any(existing is listener or existing == listener for existing in self._listeners):
                self._listeners.append(listener)
        return listener

    def collect(self, listeners: Iterable[Any]) -> int:
        """Add every listener from ``listeners``; returns how many were new."""
        before = len(self)
        for listener in listeners:
            self.add(listener)
        return len(self) - before

    def listeners(self) -> tuple[ResourceListener, ...]:
        with self._lock:
            return tuple(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def fire(self) -> int:
        """Call ``on_reload`` on every listener in order. Returns the failure count."""
        failures = 0
        for listener in self.listeners():
            try:
                listener.on_reload()
            except Exception:
                failures += 1
                logger.exception("Resource listener %r failed", listener)
        return failures


# Listeners connected before any service exists; consumed by the next initialize().
_pending_listeners: List[ResourceListener] = []


def connect_listener(listener: Any) -> Any:
    """Register a listener for the next initialization. Usable as a decorator."""
    _pending_listeners.append(as_listener(listener))
    return listener


def consume_pending_listeners() -> list[ResourceListener]:
    listeners = list(_pending_listeners)
    _pending_listeners.clear()
    return listeners


__all__ = [
    "FunctionListener",
    "ListenerHub",
    "ResourceListener",
    "as_listener",
    "connect_listener",
    "consume_pending_listeners",
]
