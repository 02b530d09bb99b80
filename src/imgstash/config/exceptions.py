"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when configuration data cannot be processed."""


class EnvMisconfiguredError(ConfigError):
    """Raised when a configured store path has the wrong type or extension."""
