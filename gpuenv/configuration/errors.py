from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the configuration file cannot be located, parsed or validated."""
