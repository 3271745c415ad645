from .models import RefDataSettings
from .settings import CONFIG_ENVVAR, Settings

__all__ = ["CONFIG_ENVVAR", "RefDataSettings", "Settings"]
