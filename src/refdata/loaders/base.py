"""Loader interfaces used to acquire record batches."""

from __future__ import annotations

from typing import Any, Iterable

from ..resources import ResourceDescriptor


class BaseLoader:
    """Base loader responsible for producing the records of one resource type.

    ``load`` returns the freshly decoded records of the current generation in
    source order, or raises. Stores treat any exception as a failed load.
    """

    def load(self, descriptor: ResourceDescriptor, location: str) -> Iterable[Any]:
        raise NotImplementedError
