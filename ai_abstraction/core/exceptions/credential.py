"""
Credential Exceptions

Errors raised while turning a stored credential blob into a usable API key.
"""

from ai_abstraction.core.exceptions.base import AIAbstractionError


class CredentialError(AIAbstractionError):
    """Base exception for credential errors."""
    pass


class CredentialDecryptionError(CredentialError):
    """
    Raised when a stored credential cannot be decrypted.

    Fatal for the candidate it belongs to; the fallback chain advances.
    """
    pass
