"""
In-Memory Provider Store

Dict-backed ProviderStore for tests and local use. Production hosts plug in
their own store (database-backed, with their own access control).
"""

from collections.abc import Iterable

from ai_abstraction.models.provider_instance import ProviderInstance


class InMemoryProviderStore:
    """
    ProviderStore backed by an insertion-ordered dict.

    list_providers returns instances in insertion order, which is the order the
    orchestrator picks fallback instances in.
    """

    def __init__(self, instances: Iterable[ProviderInstance] = ()):
        self._instances: dict[str, ProviderInstance] = {}
        for instance in instances:
            self.add(instance)

    def add(self, instance: ProviderInstance) -> None:
        self._instances[instance.id] = instance

    def remove(self, provider_id: str) -> bool:
        return self._instances.pop(provider_id, None) is not None

    async def get_provider(self, provider_id: str) -> ProviderInstance | None:
        return self._instances.get(provider_id)

    async def list_providers(self, user_id: str) -> list[ProviderInstance]:
        return [i for i in self._instances.values() if i.user_id == user_id]

    def __len__(self) -> int:
        return len(self._instances)
