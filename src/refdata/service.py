# refdata/service.py
"""The resource service: one object hosts talk to.

Lifecycle:

1. construct      -> settings resolved and validated, loader and registry built
2. ``on_refresh`` -> host startup signal; runs ``initialize`` once (latched)
3. ``initialize`` -> collect listeners, discover types, load every type,
                     notify listeners
4. ``reload_all`` -> on demand: reload every store, notify listeners

Lookups (``get``, ``list_by_index`` ...) delegate to the :class:`StoreRegistry`.
"""
from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable

from asgiref.sync import sync_to_async

from ._state import consume_refresh
from .conf.settings import Settings
from .discovery import discover_resource_types
from .listeners import ListenerHub, ResourceListener, consume_pending_listeners
from .loaders.base import BaseLoader
from .registry import ReloadReport, StoreRegistry
from .tracing import SPAN_INITIALIZE, record_report, span

logger = logging.getLogger(__name__)

DiscoverFn = Callable[[Iterable[str]], Iterable[Any]]


def _import_string(path: str):
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, attr) if attr else module


class ResourceService:
    """Loads, indexes and serves reference-data resources.

    :param conf: Settings overrides, applied over ``REFDATA_<KEY>`` environment
        variables, ``REFDATA_CONFIG_MODULE`` and the defaults.
    :param loader: Loader used for every store; built from ``LOADER`` when
        omitted.
    :param types: Explicit resource types. When given, discovery is skipped.
    :param discover: Discovery callable receiving ``PACKAGES``; defaults to
        :func:`refdata.discovery.discover_resource_types`.
    :param listeners: Listeners registered up front.
    """

    def __init__(
        self,
        conf: Mapping[str, Any] | None = None,
        *,
        loader: BaseLoader | None = None,
        types: Iterable[Any] | None = None,
        discover: DiscoverFn | None = None,
        listeners: Iterable[Any] = (),
    ) -> None:
        self.conf = Settings()
        self.conf.update_from_envvar()
        self.conf.update_from_environ()
        if conf:
            self.conf.update_from_mapping(conf)
        self.settings = self.conf.validated()

        if loader is None:
            loader = _import_string(self.settings.LOADER)()
        self.loader = loader
        self.registry = StoreRegistry(loader, self.settings.LOCATION)
        self.hub = ListenerHub()
        self.hub.collect(listeners)

        self._listener_paths: set[str] = set()
        self._types = list(types) if types is not None else None
        self._discover = discover or discover_resource_types
        self._initialized = False

    def __repr__(self) -> str:
        return f"<ResourceService types={self.registry.count()} listeners={len(self.hub)}>"

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_listener(self, listener: Any) -> ResourceListener:
        return self.hub.add(listener)

    def listener(self, func: Callable[[], Any]) -> Callable[[], Any]:
        """Decorator form of :meth:`add_listener`."""
        self.hub.add(func)
        return func

    def _register_listeners(self) -> None:
        self.hub.collect(consume_pending_listeners())
        for path in self.settings.LISTENERS:
            if path in self._listener_paths:
                continue
            try:
                self.hub.add(_import_string(path))
            except Exception:
                logger.exception("Cannot register resource listener %s", path)
            else:
                self._listener_paths.add(path)

    def fire_reload(self) -> int:
        """Notify every listener; returns the number that failed."""
        return self.hub.fire()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _discover_types(self) -> list[Any] | None:
        """Resource types to load, or ``None`` when discovery itself failed."""
        if self._types is not None:
            return list(self._types)
        packages = self.settings.PACKAGES
        try:
            return list(self._discover(packages))
        except Exception:
            logger.exception("Resource discovery failed for %s", ", ".join(packages) or "<none>")
            return None

    def initialize(self) -> ReloadReport:
        """Discover and load every resource type, then notify listeners."""
        with span(SPAN_INITIALIZE) as current:
            self._register_listeners()
            types = self._discover_types()
            if types is None:
                types = []
            elif not types:
                logger.error("No resource types found in %s", ", ".join(self.settings.PACKAGES) or "<none>")
            report = self.registry.reload_types(types)
            report.listener_failures = self.fire_reload()
            current.set_attribute("refdata.types", len(types))
            record_report(current, report)
        self._initialized = True
        logger.info(
            "Resources loaded: %d types (%d failed), %d listeners notified",
            len(report.loaded),
            len(report.failed),
            len(self.hub),
        )
        return report

    def on_refresh(self) -> ReloadReport | None:
        """
        Host startup trigger.

        Only the first call initializes unless ``REFRESH_EVENT_RELOAD`` is set;
        later calls return ``None``. Errors escaping ``initialize`` are logged
        and whatever loaded stays available.
        """
        if not consume_refresh(allow_repeat=self.settings.REFRESH_EVENT_RELOAD):
            logger.debug("Refresh signal ignored; resources already initialized")
            return None
        try:
            return self.initialize()
        except Exception:
            logger.exception("Resource initialization failed")
            return None

    def reload_all(self) -> ReloadReport:
        """Reload every registered type, then notify listeners."""
        report = self.registry.reload_all()
        report.listener_failures = self.fire_reload()
        logger.info("Resources reloaded: %d types (%d failed)", len(report.loaded), len(report.failed))
        return report

    async def areload_all(self) -> ReloadReport:
        return await sync_to_async(self.reload_all, thread_sensitive=False)()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get(self, ident: Any, record_type: Any) -> Any | None:
        return self.registry.get(ident, record_type)

    def list_by_index(self, index_name: str | None, record_type: Any, *index_values: Any) -> list[Any]:
        return self.registry.list_by_index(index_name, record_type, *index_values)

    def list_id_by_index(self, index_name: str | None, record_type: Any, *index_values: Any) -> list[Any]:
        return self.registry.list_id_by_index(index_name, record_type, *index_values)

    def get_by_unique(self, index_name: str | None, record_type: Any, *index_values: Any) -> Any | None:
        return self.registry.get_by_unique(index_name, record_type, *index_values)

    def list_all(self, record_type: Any) -> list[Any]:
        return self.registry.list_all(record_type)

    def add_to_index(self, index_name: str | None, ident: Any, record_type: Any, *index_values: Any) -> None:
        self.registry.add_to_index(index_name, ident, record_type, *index_values)

    async def aget(self, ident: Any, record_type: Any) -> Any | None:
        return await self.registry.aget(ident, record_type)

    async def alist_all(self, record_type: Any) -> list[Any]:
        return await self.registry.alist_all(record_type)


__all__ = ["ResourceService"]
