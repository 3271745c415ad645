# refdata/keys.py
"""Canonical index-key construction.

Keys have the shape::

    typeName&indexName#value0^value1^...^valueN

- ``typeName``  : the resource name, e.g. ``game.models.Item``
- ``indexName`` : the index name, e.g. ``lvl``
- ``valueN``    : the index values in call order, e.g. ``(1, 2, 3)``

Absent parts are left out: no type drops ``typeName&``, no index name drops
``indexName`` (the ``#`` stays when values follow), no values drops the
values segment. Index values are not escaped; values containing ``&``, ``#``
or ``^`` can make two different lookups share a key.
"""
from __future__ import annotations

from typing import Any

from .resources import describe

TYPE_DELIMITER = "&"
INDEX_DELIMITER = "#"
VALUE_DELIMITER = "^"


def type_name(record_type: Any) -> str:
    """Name used for ``record_type`` in index keys."""
    if isinstance(record_type, str):
        return record_type
    return describe(record_type).name


def build_index_key(record_type: Any, index_name: str | None, *index_values: Any) -> str:
    parts: list[str] = []
    if record_type is not None:
        parts.append(type_name(record_type))
        parts.append(TYPE_DELIMITER)
    if index_name is not None:
        parts.append(index_name)
        parts.append(INDEX_DELIMITER)
    elif index_values:
        parts.append(INDEX_DELIMITER)
    if index_values:
        parts.append(VALUE_DELIMITER.join(str(v) for v in index_values))
    return "".join(parts)


__all__ = ["build_index_key", "type_name"]
