"""Custom exceptions for kwscan."""


class KwscanError(Exception):
    """Base exception for all kwscan errors."""


class ConfigError(KwscanError):
    """Raised when configuration is invalid or cannot be loaded."""


class InputError(KwscanError):
    """Raised when batch parameters are rejected before any scan starts.

    Covers an empty URL list, a blank keyword and a concurrency below 1.
    """


class BrowserLaunchError(KwscanError):
    """Raised when the shared headless browser cannot be started."""
