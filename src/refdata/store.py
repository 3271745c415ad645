# refdata/store.py
"""Per-type indexed record store.

Each :class:`IndexedStore` owns the records of exactly one resource type. The
records, the primary table and the index table of one successful load form a
:class:`Generation`; a reload builds a complete new generation off to the side
and publishes it with a single attribute assignment. Readers grab the current
generation once per call and never lock, so they observe either the old or
the new generation, never a mix of both.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Iterable

from .exceptions import ResourceLoadError
from .keys import build_index_key
from .loaders.base import BaseLoader
from .resources import ResourceDescriptor
from .tracing import SPAN_STORE_RELOAD, span

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Generation:
    number: int = 0
    records: tuple[Any, ...] = ()
    primary: dict[Any, Any] = field(default_factory=dict)
    index: dict[str, list[Any]] = field(default_factory=dict)


def _append_unique(table: dict[str, list[Any]], key: str, ident: Any) -> None:
    ids = table.get(key)
    if ids is None:
        ids = []
        table[key] = ids
    if ident not in ids:
        ids.append(ident)


class IndexedStore:
    """Primary-key and secondary-index lookups for one resource type."""

    def __init__(self, descriptor: ResourceDescriptor, loader: BaseLoader, location: str) -> None:
        self.descriptor = descriptor
        self.loader = loader
        self.location = location
        self._generation = Generation()
        # serializes whole reloads
        self._reload_lock = RLock()
        # guards in-place index mutation and the generation swap
        self._index_lock = RLock()
        # (key, ident) -> None, in insertion order
        self._dynamic: dict[tuple[str, Any], None] = {}

    def __repr__(self) -> str:
        return f"<IndexedStore {self.descriptor.name} gen={self._generation.number} records={len(self)}>"

    # --- state ---

    @property
    def generation(self) -> int:
        """Number of successful loads so far; 0 before the first."""
        return self._generation.number

    @property
    def loaded(self) -> bool:
        return self._generation.number > 0

    def count(self) -> int:
        return len(self._generation.records)

    __len__ = count

    def __contains__(self, ident: Any) -> bool:
        return ident in self._generation.primary

    def index_keys(self) -> tuple[str, ...]:
        return tuple(self._generation.index.keys())

    def index_key(self, index_name: str | None, *index_values: Any) -> str:
        return build_index_key(self.descriptor, index_name, *index_values)

    # --- retrieval ---

    def get(self, ident: Any) -> Any | None:
        return self._generation.primary.get(ident)

    def get_index_id_list(self, index_name: str | None, *index_values: Any) -> list[Any]:
        ids = self._generation.index.get(self.index_key(index_name, *index_values))
        return list(ids) if ids else []

    def get_by_index(self, index_name: str | None, *index_values: Any) -> list[Any]:
        gen = self._generation
        ids = gen.index.get(self.index_key(index_name, *index_values))
        if not ids:
            return []
        records = []
        for ident in list(ids):
            record = gen.primary.get(ident)
            if record is not None:
                records.append(record)
        return records

    def list_all(self) -> list[Any]:
        return list(self._generation.records)

    # --- mutation ---

    def add_to_index(self, index_name: str | None, ident: Any, *index_values: Any) -> None:
        """Add ``ident`` under the computed key unless it is already listed.

        The addition is kept and applied again to every later generation that
        contains ``ident``. It is forgotten by the first reload whose
        generation does not.
        """
        key = self.index_key(index_name, *index_values)
        with self._index_lock:
            _append_unique(self._generation.index, key, ident)
            self._dynamic[(key, ident)] = None

    def reload(self) -> int:
        """Load a fresh generation from the loader and publish it.

        Returns the number of records loaded. On failure the current
        generation stays in place and :class:`ResourceLoadError` is raised.
        """
        descriptor = self.descriptor
        with self._reload_lock, span(
            SPAN_STORE_RELOAD, attributes={"refdata.type": descriptor.name}
        ) as current:
            try:
                records = tuple(self.loader.load(descriptor, self.location))
            except ResourceLoadError:
                raise
            except Exception as err:
                raise ResourceLoadError(
                    f"Failed to load {descriptor.name}: {err}", record_type=descriptor.record_type
                ) from err

            primary, index = self._build_tables(records)

            with self._index_lock:
                for key, ident in list(self._dynamic):
                    if ident in primary:
                        _append_unique(index, key, ident)
                    else:
                        del self._dynamic[(key, ident)]
                number = self._generation.number + 1
                self._generation = Generation(number=number, records=records, primary=primary, index=index)

            current.set_attribute("refdata.records", len(records))
            current.set_attribute("refdata.generation", number)
            logger.debug("Loaded %d %s records (generation %d)", len(records), descriptor.name, number)
            return len(records)

    def _build_tables(self, records: Iterable[Any]) -> tuple[dict[Any, Any], dict[str, list[Any]]]:
        descriptor = self.descriptor
        primary: dict[Any, Any] = {}
        index: dict[str, list[Any]] = {}
        for position, record in enumerate(records):
            try:
                ident = descriptor.id_of(record)
            except KeyError as err:
                raise ResourceLoadError(
                    f"{descriptor.name} record #{position} has no '{descriptor.id_field}' field",
                    record_type=descriptor.record_type,
                ) from err
            if ident is None:
                raise ResourceLoadError(
                    f"{descriptor.name} record #{position} has a null id", record_type=descriptor.record_type
                )
            if ident in primary:
                raise ResourceLoadError(
                    f"Duplicate {descriptor.name} id {ident!r} at record #{position}",
                    record_type=descriptor.record_type,
                )
            primary[ident] = record

            for spec in descriptor.indexes:
                try:
                    values = spec.values_for(record)
                except KeyError as err:
                    raise ResourceLoadError(
                        f"{descriptor.name} record {ident!r} lacks field {err.args[0]!r} for index '{spec.name}'",
                        record_type=descriptor.record_type,
                    ) from err
                _append_unique(index, self.index_key(spec.name, *values), ident)
        return primary, index


__all__ = ["Generation", "IndexedStore"]
