# refdata/resources.py
"""Resource type declarations.

A *resource* is a class whose instances are reference-data records. The
``@resource`` decorator marks a class as managed and attaches a
:class:`ResourceDescriptor` describing how its records are identified and
indexed::

    @resource(name="Item", indexes=["lvl", index("kind_lvl", "kind", "lvl")])
    class Item(BaseModel):
        id: int
        kind: str
        lvl: int

Anything else that identifies a record type (a plain class, a string tag or a
descriptor) can be turned into a descriptor with :func:`describe`.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar, overload

from .exceptions import ResourceDefinitionError

RESOURCE_MARKER = "__resource__"

T = TypeVar("T", bound=type)

_MISSING = object()


@dataclass(frozen=True, slots=True)
class IndexSpec:
    """A statically declared secondary index.

    ``fields`` are read from every record in declared order and become the
    index values. An index without fields lists every record of the type.
    """

    name: str
    fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise ResourceDefinitionError("index name must be a non-empty string")
        object.__setattr__(self, "fields", tuple(self.fields))

    @classmethod
    def coerce(cls, value: str | IndexSpec) -> IndexSpec:
        if isinstance(value, IndexSpec):
            return value
        if isinstance(value, str):
            return cls(value, (value,))
        raise ResourceDefinitionError(f"Unsupported index declaration: {value!r}")

    def values_for(self, record: Any) -> tuple[Any, ...]:
        return tuple(field_value(record, f) for f in self.fields)


def index(name: str, *fields: str) -> IndexSpec:
    """Declare an index named ``name`` over ``fields`` (none = whole type)."""
    return IndexSpec(name, fields)


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    record_type: Any
    name: str
    id_field: str = "id"
    indexes: tuple[IndexSpec, ...] = field(default_factory=tuple)
    source: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indexes", tuple(IndexSpec.coerce(i) for i in self.indexes))
        names = [i.name for i in self.indexes]
        if len(names) != len(set(names)):
            raise ResourceDefinitionError(f"Duplicate index names declared on {self.name}: {names}")
        if self.source is None:
            default = self.record_type if isinstance(self.record_type, str) else self.record_type.__name__
            object.__setattr__(self, "source", default)

    def id_of(self, record: Any) -> Any:
        return field_value(record, self.id_field)

    def __str__(self) -> str:
        return self.name


def field_value(record: Any, name: str) -> Any:
    """Read ``name`` from a mapping record or an attribute-style record."""
    if isinstance(record, Mapping):
        value = record.get(name, _MISSING)
    else:
        value = getattr(record, name, _MISSING)
    if value is _MISSING:
        raise KeyError(name)
    return value


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


@overload
def resource(cls: T, /) -> T: ...


@overload
def resource(
    *,
    name: str | None = None,
    id_field: str = "id",
    indexes: Iterable[str | IndexSpec] = (),
    source: str | None = None,
) -> Callable[[T], T]: ...


def resource(
    cls: Any = None,
    /,
    *,
    name: str | None = None,
    id_field: str = "id",
    indexes: Iterable[str | IndexSpec] = (),
    source: str | None = None,
):
    """Mark a class as a managed resource type.

    Usable bare (``@resource``) or with options (``@resource(name=...)``).
    """

    def decorator(target: T) -> T:
        if not isinstance(target, type):
            raise ResourceDefinitionError(f"@resource can only decorate classes, got {target!r}")
        descriptor = ResourceDescriptor(
            record_type=target,
            name=name or qualified_name(target),
            id_field=id_field,
            indexes=tuple(indexes),
            source=source,
        )
        setattr(target, RESOURCE_MARKER, descriptor)
        return target

    if cls is not None:
        return decorator(cls)
    return decorator


def is_resource(obj: Any) -> bool:
    """True when ``obj`` is a class carrying its own ``@resource`` marker."""
    return isinstance(obj, type) and isinstance(obj.__dict__.get(RESOURCE_MARKER), ResourceDescriptor)


def describe(obj: Any) -> ResourceDescriptor:
    """Return the descriptor for a resource class, plain class, name or descriptor."""
    if isinstance(obj, ResourceDescriptor):
        return obj
    if is_resource(obj):
        return obj.__dict__[RESOURCE_MARKER]
    if isinstance(obj, type):
        return ResourceDescriptor(record_type=obj, name=qualified_name(obj))
    if isinstance(obj, str) and obj:
        return ResourceDescriptor(record_type=obj, name=obj)
    raise ResourceDefinitionError(f"Cannot describe resource type {obj!r}")


def resource_key(obj: Any) -> Any:
    """The registry key for a record type: the class itself, or the string tag."""
    if isinstance(obj, ResourceDescriptor):
        return obj.record_type
    return obj


__all__ = [
    "IndexSpec",
    "RESOURCE_MARKER",
    "ResourceDescriptor",
    "describe",
    "field_value",
    "index",
    "is_resource",
    "qualified_name",
    "resource",
    "resource_key",
]
