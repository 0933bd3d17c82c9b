"""
Exceptions

Errors raised by the configuration and persistence helpers.
The diff, extraction and reconciliation components recover from
malformed input locally and do not raise these.
"""


class ReconcilerError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ReconcilerError, ValueError):
    """Invalid or unreadable configuration."""


class ReviewDataError(ReconcilerError):
    """A stored review record could not be decoded."""
