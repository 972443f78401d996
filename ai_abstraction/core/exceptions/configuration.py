"""
Provider Configuration Exceptions

Errors raised while resolving a caller's provider instance. These are not
retried: on the primary provider they are surfaced to the caller immediately.
"""

from ai_abstraction.core.exceptions.base import ConfigurationError


class ProviderNotFoundError(ConfigurationError):
    """Raised when no provider instance exists for the given identifier."""
    pass


class ProviderInactiveError(ConfigurationError):
    """Raised when the provider instance exists but has been deactivated by its owner."""
    pass


class AdapterNotRegisteredError(ConfigurationError):
    """Raised when no adapter is registered for a provider type."""
    pass
