# refdata/exceptions.py
"""Reference-data exceptions"""


class RefDataError(Exception):
    """Base for all refdata exceptions."""


# ----------------------------------------------------------------------------
# Loading errors
# ----------------------------------------------------------------------------
class ResourceLoadError(RefDataError):
    """A record batch could not be loaded or indexed for one resource type."""

    def __init__(self, message: str, *, record_type: object = None) -> None:
        super().__init__(message)
        self.record_type = record_type


class ResourceDefinitionError(RefDataError, TypeError): ...


# ----------------------------------------------------------------------------
# Registry errors
# ----------------------------------------------------------------------------
class RegistryError(RefDataError): ...


class RegistryLookupError(RegistryError, LookupError): ...


__all__ = [
    "RefDataError",
    "ResourceLoadError",
    "ResourceDefinitionError",
    "RegistryError",
    "RegistryLookupError",
]
