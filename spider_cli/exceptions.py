"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class SpiderCliError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(SpiderCliError):
    """Raised for issues related to configuration loading or validation."""


class TransportError(SpiderCliError):
    """Raised on network, DNS, TLS or timeout failures and unexpected HTTP statuses."""


class ParseError(SpiderCliError):
    """
    Raised when a response body does not yield a usable document or a selector
    cannot be applied to it.
    """


class AuthRejectedError(SpiderCliError):
    """Raised when the download service rejects the login or the current session."""


class SubmitError(SpiderCliError):
    """Raised when the download service refuses a new job for a reason other than auth."""


class CommitError(SpiderCliError):
    """Raised when advanced counters could not be written back to the content store."""


class RunCancelledError(SpiderCliError):
    """Raised at a stage boundary once a stop has been requested."""
