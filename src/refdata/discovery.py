# refdata/discovery.py
"""Resource type discovery.

Imports the configured modules and collects the classes marked with
``@resource``. Module paths may be glob patterns (``game.*.tables``), which
are expanded against ``sys.path``.
"""

from __future__ import annotations

import glob
import importlib
import importlib.util
import logging
import os
import sys
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Iterable

from .resources import is_resource

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DiscoveryResult:
    imported: list[str] = field(default_factory=list)
    types: list[type] = field(default_factory=list)


def _safe_import(module_path: str) -> ModuleType | None:
    """
    Import module if it exists.

    Returns None if the module doesn't exist. Raises if the module exists but
    throws during import (real bug).
    """
    try:
        spec = importlib.util.find_spec(module_path)
    except ModuleNotFoundError:
        return None
    if spec is None:
        return None
    return importlib.import_module(module_path)


def _is_pattern(value: str) -> bool:
    return any(char in value for char in "*?[")


def _module_name_from_path(candidate: str, base_path: str) -> str | None:
    rel_path = os.path.relpath(candidate, base_path)
    if rel_path.startswith(os.pardir):
        return None

    rel_path = rel_path.replace(os.sep, ".")
    for suffix in (".__init__.py", ".py"):
        if rel_path.endswith(suffix):
            rel_path = rel_path[: -len(suffix)]
            break

    rel_path = rel_path.rstrip(".")
    return rel_path or None


def _expand_pattern(pattern: str) -> list[str]:
    matches: list[str] = []
    module_path_pattern = pattern.replace(".", os.sep)
    for base in sys.path:
        if not base or not os.path.isdir(base):
            continue
        for suffix in ("", ".py", f"{os.sep}__init__.py"):
            for candidate in sorted(glob.glob(os.path.join(base, f"{module_path_pattern}{suffix}"))):
                if "__pycache__" in candidate:
                    continue
                module_name = _module_name_from_path(candidate, base)
                if module_name and module_name not in matches:
                    matches.append(module_name)
    return matches


def resolve_modules(modules: Iterable[str]) -> list[str]:
    resolved: list[str] = []
    for module in modules:
        if not module:
            continue
        if _is_pattern(module):
            resolved.extend(_expand_pattern(module))
        else:
            resolved.append(module)
    return list(dict.fromkeys(resolved))


def _collect_types(module: ModuleType) -> list[type]:
    found: list[type] = []
    for value in vars(module).values():
        if is_resource(value) and value.__module__ == module.__name__:
            found.append(value)
    return found


def scan(packages: Iterable[str]) -> DiscoveryResult:
    """Import ``packages`` and collect the ``@resource`` classes they define."""
    result = DiscoveryResult()
    for module_path in resolve_modules(packages):
        module = _safe_import(module_path)
        if module is None:
            logger.debug("Resource module %s not found; skipped", module_path)
            continue
        result.imported.append(module_path)
        for cls in _collect_types(module):
            if cls not in result.types:
                result.types.append(cls)
    return result


def discover_resource_types(packages: Iterable[str]) -> list[Any]:
    return scan(packages).types


__all__ = ["DiscoveryResult", "discover_resource_types", "resolve_modules", "scan"]
