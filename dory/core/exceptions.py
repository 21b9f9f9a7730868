"""Exceptions raised by dory's settings and resolver layers."""


class DoryError(Exception):
    """Base class for dory errors."""

    pass


class SettingsNotFoundError(DoryError, FileNotFoundError):
    """Raised when the settings file does not exist."""

    pass


class SettingsParseError(DoryError, ValueError):
    """Raised when the settings file exists but is not a valid document."""

    pass


class UnsupportedPlatformError(DoryError, RuntimeError):
    """Raised when no resolver strategy exists for the host platform."""

    pass
