"""Exception hierarchy for source resolution.

Expected outcomes (unknown source, denied access) are not exceptions; the
resolver returns them as values. What is raised here is either a caller or
programming error, or a backend failure the caller may choose to retry.
"""

from __future__ import annotations


class CharonError(Exception):
    """Base class for our custom internal errors."""


class SourceContractError(CharonError, NotImplementedError):
    """Raised when a required source capability was never implemented."""


class NoResourcePathError(CharonError, ValueError):
    """Raised when a source is asked for a dataset without a dataset path."""

    def __init__(self, message: str = "No resource path provided"):
        super().__init__(message)


class InvalidPathError(CharonError, ValueError):
    """Raised for path parts that cannot be mapped onto a resource name."""


class BackendUnavailableError(CharonError):
    """Raised when an object-store call fails or times out.

    Carries enough context for the caller to decide on retry policy; this
    package never retries on its own.
    """

    def __init__(self, source_name: str, operation: str, reason: str = ""):
        self.source_name = source_name
        self.operation = operation
        self.reason = reason
        message = f"[{source_name}] {operation} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DuplicateSourceError(CharonError, ValueError):
    """Raised when two sources register under the same name."""


class TenantConfigError(CharonError):
    """Raised when the tenant configuration file is invalid."""

    def __init__(self, message: str, tenant: str | None = None):
        self.tenant = tenant
        full_message = f"[{tenant}] {message}" if tenant else message
        super().__init__(full_message)


class ConfigError(CharonError):
    """Raised for invalid runtime configuration values."""
