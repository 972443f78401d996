"""
Collaborator Protocols

This module defines the protocols for the external collaborators the
abstraction layer depends on but does not own: the provider instance store,
the credential decryptor and the usage sink.

Architectural Decision: Protocol-based abstraction
- Persistence, row-level access control and encryption-at-rest live outside
  this library
- Facilitates testing with in-memory implementations
- Runtime validation with @runtime_checkable
"""

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from ai_abstraction.models.provider_instance import ProviderInstance, UsageRecord


@runtime_checkable
class ProviderStore(Protocol):
    """
    Read access to caller-owned provider instances.

    Implementations are expected to enforce ownership themselves: the layer
    only ever asks for instances by id or by owning user.
    """

    async def get_provider(self, provider_id: str) -> ProviderInstance | None:
        """
        Look up a provider instance by id.

        Returns:
            The instance, or None if it does not exist
        """
        ...

    async def list_providers(self, user_id: str) -> list[ProviderInstance]:
        """
        List every provider instance owned by a user.

        Returns:
            Instances in the store's natural order (active and inactive)
        """
        ...


@runtime_checkable
class CredentialDecryptor(Protocol):
    """
    Turns a stored credential blob into a plaintext API key.

    ``decrypt`` may be a plain function or a coroutine function; the
    orchestrator awaits the result when it is awaitable.
    """

    def decrypt(self, blob: str) -> str | Awaitable[str]:
        ...


@runtime_checkable
class UsageRecorder(Protocol):
    """Sink for successful-call usage records."""

    async def record(self, usage: UsageRecord) -> None:
        ...
