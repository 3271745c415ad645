"""Type -> store registry."""

from .base import ReloadReport, StoreRegistry

__all__ = ["ReloadReport", "StoreRegistry"]
