"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class WebstartError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(WebstartError):
    """
    Raised for invalid launch setups: a descriptor without resources or entry
    point, a re-entrant run, or a broken configuration file.
    """


class DescriptorError(ConfigurationError):
    """Raised when a descriptor cannot be loaded or does not look like a JNLP file."""


class DownloadError(WebstartError):
    """Raised when a resource cannot be fetched (HTTP status, network or stream)."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class VerificationUnavailableError(WebstartError):
    """Raised when the verification mechanism itself could not be executed."""


class TrustError(WebstartError):
    """Raised when an artifact failed verification and no trust override was given."""


class ProcessSpawnError(WebstartError):
    """Raised when the child runtime process could not be started."""


class AbortedError(WebstartError):
    """Raised when a launch was cancelled by an external stop request."""
