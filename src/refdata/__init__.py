"""
refdata: in-memory reference-data registry.

Loads typed record tables (configuration and game-design data) from an
external source, indexes them by primary key and by secondary keys, and
serves lookups to application code while supporting full reloads in place.

- Declare record types with ``@resource`` (`refdata.resources`)
- Build index keys with ``build_index_key`` (`refdata.keys`)
- Load and look up records through ``ResourceService`` (`refdata.service`)
- Plug sources in with loaders (`refdata.loaders`)
"""

from importlib.metadata import PackageNotFoundError, version

from ._state import current_service, get_current_service, push_current_service, set_current_service
from .exceptions import RefDataError, RegistryLookupError, ResourceDefinitionError, ResourceLoadError
from .keys import build_index_key
from .listeners import ResourceListener, connect_listener
from .loaders import BaseLoader, JsonLoader, StaticLoader
from .registry import ReloadReport, StoreRegistry
from .resources import IndexSpec, ResourceDescriptor, describe, index, resource
from .service import ResourceService
from .store import IndexedStore

try:
    __version__ = version("refdata")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BaseLoader",
    "IndexSpec",
    "IndexedStore",
    "JsonLoader",
    "RefDataError",
    "RegistryLookupError",
    "ReloadReport",
    "ResourceDefinitionError",
    "ResourceDescriptor",
    "ResourceListener",
    "ResourceLoadError",
    "ResourceService",
    "StaticLoader",
    "StoreRegistry",
    "build_index_key",
    "connect_listener",
    "current_service",
    "describe",
    "get_current_service",
    "index",
    "push_current_service",
    "resource",
    "set_current_service",
]
