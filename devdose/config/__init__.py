from devdose.config.logging_config import setup_logging
from devdose.config.settings import ConfigurationError, Settings, get_settings

__all__ = [
    "ConfigurationError",
    "Settings",
    "get_settings",
    "setup_logging",
]
