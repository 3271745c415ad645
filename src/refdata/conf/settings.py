"""Layered resource settings.

Lookups walk three layers: explicit overrides, any mappings handed to the
constructor, then :data:`DEFAULTS`. Sources feed the override layer in the
order the service applies them:

1. the module named by ``REFDATA_CONFIG_MODULE``
2. ``REFDATA_<KEY>`` environment variables for the known keys
3. the mapping passed to :class:`~refdata.service.ResourceService`

Only upper-case names are taken from modules and mappings, optionally
restricted to a ``NAMESPACE_`` prefix which is then stripped.
"""


import importlib
import os
from collections import ChainMap
from typing import Any, Iterator, Mapping, MutableMapping

from .defaults import DEFAULTS
from .models import RefDataSettings

CONFIG_ENVVAR = "REFDATA_CONFIG_MODULE"
ENV_PREFIX = "REFDATA_"


class Settings(MutableMapping[str, Any]):
    def __init__(self, *layers: Mapping[str, Any]) -> None:
        self._storage = ChainMap({}, *(dict(layer) for layer in layers), dict(DEFAULTS))

    def __getitem__(self, key: str) -> Any:
        return self._storage[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._storage.maps[0][key] = value

    def __delitem__(self, key: str) -> None:
        del self._storage.maps[0][key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def update_from_object(self, obj: str, *, namespace: str | None = None) -> None:
        """Copy the settings defined as module attributes of ``obj``."""
        module = importlib.import_module(obj)
        self.update_from_mapping(vars(module), namespace=namespace)

    def update_from_envvar(self, envvar: str = CONFIG_ENVVAR, *, namespace: str | None = None) -> bool:
        """Load the module named by ``envvar``; returns False when it is unset."""
        module_name = os.environ.get(envvar)
        if not module_name:
            return False
        self.update_from_object(module_name, namespace=namespace)
        return True

    def update_from_environ(self, prefix: str = ENV_PREFIX, environ: Mapping[str, str] | None = None) -> list[str]:
        """
        Apply ``<prefix><KEY>`` environment variables for every default key.

        Tuple-valued keys (``PACKAGES``, ``LISTENERS``) take a comma separated
        list. Other values are left as strings for :meth:`validated` to coerce.
        Returns the keys that were set.
        """
        environ = os.environ if environ is None else environ
        applied: list[str] = []
        for key, default in DEFAULTS.items():
            raw = environ.get(f"{prefix}{key}")
            if raw is None:
                continue
            if isinstance(default, tuple):
                self[key] = tuple(part.strip() for part in raw.split(",") if part.strip())
            else:
                self[key] = raw
            applied.append(key)
        return applied

    def update_from_mapping(self, mapping: Mapping[str, Any], *, namespace: str | None = None) -> None:
        self._storage.maps[0].update(setting_names(mapping, namespace))

    def as_dict(self) -> dict[str, Any]:
        return dict(self._storage)

    def validated(self) -> RefDataSettings:
        """Typed snapshot of the current values; raises ``pydantic.ValidationError``."""
        return RefDataSettings.model_validate(self.as_dict())


def setting_names(mapping: Mapping[str, Any], namespace: str | None = None) -> dict[str, Any]:
    """The setting entries of ``mapping``: upper-case names, namespace prefix stripped."""
    prefix = f"{namespace}_" if namespace else ""
    found: dict[str, Any] = {}
    for name, value in mapping.items():
        if not name.isupper() or not name.startswith(prefix):
            continue
        key = name[len(prefix) :]
        if key:
            found[key] = value
    return found
