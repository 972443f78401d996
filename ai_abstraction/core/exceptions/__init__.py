"""
Exception Module

Structured exception hierarchy for the AI provider abstraction layer.

Module Structure:
-----------------
- **base.py**: AIAbstractionError base class + ConfigurationError
- **configuration.py**: Provider instance / adapter resolution errors
- **credential.py**: Credential decryption errors
- **provider.py**: Upstream provider errors and chain exhaustion
- **streaming.py**: Streaming errors

Usage:
------
```python
from ai_abstraction.core.exceptions import AllProvidersFailedError, ProviderAPIError
```
"""

from ai_abstraction.core.exceptions.base import AIAbstractionError, ConfigurationError
from ai_abstraction.core.exceptions.configuration import (
    AdapterNotRegisteredError,
    ProviderInactiveError,
    ProviderNotFoundError,
)
from ai_abstraction.core.exceptions.credential import CredentialDecryptionError, CredentialError
from ai_abstraction.core.exceptions.provider import (
    AllProvidersFailedError,
    FallbackStateError,
    ProviderAPIError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderNotAvailableError,
    ProviderNotImplementedError,
    ProviderRateLimitError,
)
from ai_abstraction.core.exceptions.streaming import StreamingError, StreamInterruptedError

__all__ = [
    # Base
    "AIAbstractionError",
    "ConfigurationError",
    # Configuration
    "ProviderNotFoundError",
    "ProviderInactiveError",
    "AdapterNotRegisteredError",
    # Credential
    "CredentialError",
    "CredentialDecryptionError",
    # Provider
    "ProviderError",
    "ProviderNotAvailableError",
    "ProviderAPIError",
    "ProviderAuthenticationError",
    "ProviderRateLimitError",
    "ProviderNotImplementedError",
    "AllProvidersFailedError",
    "FallbackStateError",
    # Streaming
    "StreamingError",
    "StreamInterruptedError",
    # Cache
]
