"""
In-memory implementations of the collaborator protocols.
"""

from ai_abstraction.infrastructure.provider_store import InMemoryProviderStore
from ai_abstraction.infrastructure.usage import InMemoryUsageRecorder

__all__ = ["InMemoryProviderStore", "InMemoryUsageRecorder"]
