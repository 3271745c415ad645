"""Loader serving records bound in memory."""

from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Iterable, Mapping

from ..exceptions import ResourceLoadError
from ..resources import ResourceDescriptor, resource_key
from .base import BaseLoader

RecordSource = Iterable[Any] | Callable[[], Iterable[Any]]


class StaticLoader(BaseLoader):
    """Serve records bound per resource type.

    Bindings are keyed by resource class, string tag or descriptor. A binding
    is either an iterable of records or a zero-argument callable returning
    one; callables run on every load, so they can stand in for a backing
    source that changes between reloads.
    """

    def __init__(self, bindings: Mapping[Any, RecordSource] | None = None) -> None:
        self._lock = RLock()
        self._bindings: dict[Any, RecordSource] = {}
        for record_type, records in (bindings or {}).items():
            self.bind(record_type, records)

    def bind(self, record_type: Any, records: RecordSource) -> None:
        with self._lock:
            self._bindings[resource_key(record_type)] = records

    def unbind(self, record_type: Any) -> None:
        with self._lock:
            self._bindings.pop(resource_key(record_type), None)

    def load(self, descriptor: ResourceDescriptor, location: str) -> list[Any]:
        with self._lock:
            source = self._bindings.get(descriptor.record_type, self._bindings.get(descriptor.name))
        if source is None:
            raise ResourceLoadError(
                f"No records bound for {descriptor.name}", record_type=descriptor.record_type
            )
        records = source() if callable(source) else source
        return list(records)
