from .base import BaseLoader
from .json_file import JsonLoader
from .static import StaticLoader

__all__ = ["BaseLoader", "JsonLoader", "StaticLoader"]
