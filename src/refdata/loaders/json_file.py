"""Loader reading one JSON array file per resource type."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import RLock
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..exceptions import ResourceLoadError
from ..resources import ResourceDescriptor
from .base import BaseLoader

logger = logging.getLogger(__name__)


class JsonLoader(BaseLoader):
    """Load ``<location>/<source><suffix>`` and validate it against the record type.

    Files hold a JSON array. When the record type is a class (a pydantic
    model, a dataclass, a ``TypedDict`` ...) each element is validated into
    an instance with a cached ``TypeAdapter``; string-tagged types yield the
    decoded objects unchanged.
    """

    def __init__(self, *, suffix: str = ".json", encoding: str = "utf-8") -> None:
        self.suffix = suffix
        self.encoding = encoding
        self._adapters: dict[type, TypeAdapter] = {}
        self._lock = RLock()

    def path_for(self, descriptor: ResourceDescriptor, location: str) -> Path:
        return Path(location) / f"{descriptor.source}{self.suffix}"

    def _adapter(self, record_type: type) -> TypeAdapter:
        with self._lock:
            adapter = self._adapters.get(record_type)
            if adapter is None:
                adapter = TypeAdapter(list[record_type])
                self._adapters[record_type] = adapter
            return adapter

    def load(self, descriptor: ResourceDescriptor, location: str) -> list[Any]:
        path = self.path_for(descriptor, location)
        try:
            raw = path.read_text(encoding=self.encoding)
        except OSError as err:
            raise ResourceLoadError(
                f"Cannot read {path} for {descriptor.name}: {err}", record_type=descriptor.record_type
            ) from err

        record_type = descriptor.record_type
        try:
            if isinstance(record_type, type):
                records = self._adapter(record_type).validate_json(raw)
            else:
                records = json.loads(raw)
        except (ValidationError, ValueError) as err:
            raise ResourceLoadError(
                f"Cannot decode {path} for {descriptor.name}: {err}", record_type=record_type
            ) from err

        if not isinstance(records, list):
            raise ResourceLoadError(
                f"{path} must contain a JSON array, got {type(records).__name__}", record_type=record_type
            )
        logger.debug("Decoded %d %s records from %s", len(records), descriptor.name, path)
        return records
