"""
LLM Provider Exceptions

All exceptions related to upstream provider calls (OpenAI, Anthropic, ...).
"""

from typing import Any

from ai_abstraction.core.exceptions.base import AIAbstractionError


class ProviderError(AIAbstractionError):
    """Base exception for LLM provider errors."""
    pass


class ProviderNotAvailableError(ProviderError):
    """
    Raised when an LLM provider cannot be reached or reports itself unavailable.

    Common causes:
    - Provider API is down
    - Network connectivity issues
    - Availability probe returned False
    """
    pass


class ProviderAPIError(ProviderError):
    """
    Raised when a provider API answers with a non-2xx status.

    Carries the HTTP status and the vendor's error text so the orchestrator and
    operators can tell a bad request from an outage.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            self.details.setdefault("status_code", status_code)


class ProviderAuthenticationError(ProviderAPIError):
    """
    Raised on HTTP 401/403.

    The same credential is never retried; the chain still advances to a
    different provider.
    """
    pass


class ProviderRateLimitError(ProviderAPIError):
    """Raised on HTTP 429. No same-provider retry loop; the chain advances."""
    pass


class ProviderNotImplementedError(ProviderError):
    """Raised by adapters that do not support an operation yet."""
    pass


class AllProvidersFailedError(ProviderError):
    """
    Raised when every candidate of the fallback chain has failed.

    The message always includes the last underlying failure.
    """
    pass


class FallbackStateError(ProviderError):
    """Raised when the fallback chain attempts an illegal state transition."""
    pass
