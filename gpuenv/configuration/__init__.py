"""Configuration loading for gpuenv."""

from .errors import ConfigurationError
from .loader import get_config, load_config, locate_config_file, reload_config
from .schema import CheckOptions, GpuenvConfig

__all__ = [
    "CheckOptions",
    "ConfigurationError",
    "GpuenvConfig",
    "get_config",
    "load_config",
    "locate_config_file",
    "reload_config",
]
