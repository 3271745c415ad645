# refdata/registry/base.py


import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Iterable

from asgiref.sync import sync_to_async

from ..exceptions import RegistryLookupError
from ..keys import build_index_key
from ..loaders.base import BaseLoader
from ..resources import describe, resource_key
from ..store import IndexedStore
from ..tracing import SPAN_RELOAD_ALL, record_report, span

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReloadReport:
    """Outcome of a batch reload: which types loaded and which failed."""

    loaded: list[str] = field(default_factory=list)
    failed: dict[str, BaseException] = field(default_factory=dict)
    listener_failures: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


class StoreRegistry:
    """Process-wide mapping of resource type -> :class:`IndexedStore`.

    Stores are created lazily, at most once per type, and never removed.
    Lookups against a type without a store return ``None`` or an empty list;
    only :meth:`require` raises.
    """

    def __init__(self, loader: BaseLoader, location: str) -> None:
        self.loader = loader
        self.location = location
        self._lock = RLock()
        self._stores: dict[Any, IndexedStore] = {}

    def __repr__(self) -> str:
        return f"<StoreRegistry types={self.count()} location={self.location!r}>"

    # --- stores ---

    def ensure_store(self, record_type: Any, *, loader: BaseLoader | None = None) -> IndexedStore:
        """
        Return the store for ``record_type``, creating it if absent.

        Concurrent callers for the same type all receive the same instance;
        the first to take the lock creates it, the others find it installed.

        :param record_type: A resource class, string tag or descriptor.
        :param loader: Loader bound to a newly created store. Ignored when the
            store already exists. Defaults to the registry's loader.
        :return: The one store for ``record_type``.
        """
        key = resource_key(record_type)
        store = self._stores.get(key)
        if store is not None:
            return store

        with self._lock:
            store = self._stores.get(key)
            if store is None:
                store = IndexedStore(describe(record_type), loader or self.loader, self.location)
                self._stores[key] = store
                logger.debug("Created store for %s", store.descriptor.name)
            return store

    def store_for(self, record_type: Any) -> IndexedStore | None:
        return self._stores.get(resource_key(record_type))

    def require(self, record_type: Any) -> IndexedStore:
        store = self.store_for(record_type)
        if store is None:
            raise RegistryLookupError(f"No store registered for {record_type!r}")
        return store

    def types(self) -> tuple[Any, ...]:
        with self._lock:
            return tuple(self._stores.keys())

    def stores(self) -> tuple[IndexedStore, ...]:
        with self._lock:
            return tuple(self._stores.values())

    def count(self) -> int:
        return len(self._stores)

    def __contains__(self, record_type: Any) -> bool:
        return resource_key(record_type) in self._stores

    # --- reload ---

    def reload(self, record_type: Any, *, loader: BaseLoader | None = None) -> bool:
        """Ensure and reload one type. Failures are logged; returns success."""
        store = self.ensure_store(record_type, loader=loader)
        try:
            store.reload()
        except Exception:
            logger.exception("Failed to load %s resources", store.descriptor.name)
            return False
        return True

    def reload_types(self, record_types: Iterable[Any]) -> ReloadReport:
        """
        Ensure a store for each of ``record_types`` and reload it.

        A failing type is logged and recorded in the report; its store keeps
        the previous generation (or stays empty) and the remaining types still
        reload. A type that cannot be described gets no store and is reported
        under its ``repr``.
        """
        report = ReloadReport()
        for record_type in record_types:
            name = repr(record_type)
            try:
                store = self.ensure_store(record_type)
                name = store.descriptor.name
                store.reload()
            except Exception as err:
                logger.exception("Failed to load %s resources", name)
                report.failed[name] = err
            else:
                report.loaded.append(name)
        return report

    def reload_all(self) -> ReloadReport:
        """Reload every registered store; see :meth:`reload_types`."""
        with span(SPAN_RELOAD_ALL, attributes={"refdata.types": self.count()}) as current:
            report = self.reload_types(self.types())
            record_report(current, report)
            return report

    # --- retrieval ---

    def get(self, ident: Any, record_type: Any) -> Any | None:
        store = self.store_for(record_type)
        if store is not None:
            return store.get(ident)
        return None

    def list_by_index(self, index_name: str | None, record_type: Any, *index_values: Any) -> list[Any]:
        store = self.store_for(record_type)
        if store is not None:
            return store.get_by_index(index_name, *index_values)
        return []

    def list_id_by_index(self, index_name: str | None, record_type: Any, *index_values: Any) -> list[Any]:
        store = self.store_for(record_type)
        if store is not None:
            return store.get_index_id_list(index_name, *index_values)
        return []

    def get_by_unique(self, index_name: str | None, record_type: Any, *index_values: Any) -> Any | None:
        """First record of an index expected to hold one match; uniqueness is not checked."""
        records = self.list_by_index(index_name, record_type, *index_values)
        return records[0] if records else None

    def list_all(self, record_type: Any) -> list[Any]:
        store = self.store_for(record_type)
        if store is not None:
            return store.list_all()
        return []

    # --- mutation ---

    def add_to_index(self, index_name: str | None, ident: Any, record_type: Any, *index_values: Any) -> None:
        """
        Add ``ident`` to an index of ``record_type``.

        Without ``index_values`` the id is added to the whole-type index
        ``build_index_key(type, index_name)``; otherwise to the keyed index.
        Does nothing when the type has no store.
        """
        store = self.store_for(record_type)
        if store is None:
            return
        store.add_to_index(index_name, ident, *index_values)

    def index_key(self, index_name: str | None, record_type: Any, *index_values: Any) -> str:
        store = self.store_for(record_type)
        target = store.descriptor if store is not None else record_type
        return build_index_key(target, index_name, *index_values)

    # --- async wrappers ---

    async def aget(self, ident: Any, record_type: Any) -> Any | None:
        return await sync_to_async(self.get)(ident, record_type)

    async def alist_all(self, record_type: Any) -> list[Any]:
        return await sync_to_async(self.list_all)(record_type)

    async def alist_by_index(self, index_name: str | None, record_type: Any, *index_values: Any) -> list[Any]:
        return await sync_to_async(self.list_by_index)(index_name, record_type, *index_values)

    async def aget_by_unique(self, index_name: str | None, record_type: Any, *index_values: Any) -> Any | None:
        return await sync_to_async(self.get_by_unique)(index_name, record_type, *index_values)

    async def areload_all(self) -> ReloadReport:
        """Async: reload every store in a worker thread."""
        return await sync_to_async(self.reload_all, thread_sensitive=False)()
