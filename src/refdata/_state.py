"""Process-wide state: the refresh latch and the current service.

The refresh latch is a one-way switch. The first refresh signal flips it and
initializes resources; later signals are ignored unless the service allows
repeated refresh reloads. Explicit ``reload_all()`` calls never touch it.
"""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from threading import Lock
from typing import Generator


_refresh_lock = Lock()
_refresh_switch = False

_current_service: ContextVar[object | None] = ContextVar("refdata_current_service", default=None)
_default_service: object | None = None


def consume_refresh(*, allow_repeat: bool = False) -> bool:
    """Flip the refresh latch. Returns whether the caller should initialize."""
    global _refresh_switch
    with _refresh_lock:
        if _refresh_switch and not allow_repeat:
            return False
        _refresh_switch = True
        return True


def refresh_consumed() -> bool:
    return _refresh_switch


def reset_refresh_latch() -> None:
    """Re-arm the latch. Meant for test isolation, not for hosts."""
    global _refresh_switch
    with _refresh_lock:
        _refresh_switch = False


def _build_default_service() -> object:
    from .service import ResourceService

    return ResourceService()


def get_current_service():
    """Return the active service, creating a default one if none is set."""
    service = _current_service.get()
    if service is None:
        global _default_service
        if _default_service is None:
            _default_service = _build_default_service()
        service = _default_service
        set_current_service(service)
    return service


def set_current_service(service: object | None) -> None:
    _current_service.set(service)


def reset_current_service() -> None:
    global _default_service
    _default_service = None
    _current_service.set(None)


@contextmanager
def push_current_service(service: object) -> Generator[object, None, None]:
    token = _current_service.set(service)
    try:
        yield service
    finally:
        _current_service.reset(token)


class ServiceProxy:
    """Stand-in for the active service, resolved on every attribute access."""

    __slots__ = ()

    def __getattr__(self, name: str):
        return getattr(get_current_service(), name)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<current service {get_current_service()!r}>"


def resolve_service(value: object) -> object:
    """Return the concrete service behind ``current_service``, or ``value`` unchanged."""
    if isinstance(value, ServiceProxy):
        return get_current_service()
    return value


current_service = ServiceProxy()

__all__ = [
    "consume_refresh",
    "current_service",
    "get_current_service",
    "push_current_service",
    "refresh_consumed",
    "resolve_service",
    "reset_current_service",
    "reset_refresh_latch",
    "set_current_service",
]
