"""
Unsupported Provider Adapters

Straico and Cohere are catalogued and may be configured by callers, but no
transport is wired for them yet. Their adapters report unavailable so the
fallback chain skips past them, and fail fast if called directly.
"""

from collections.abc import AsyncIterator
from typing import Any

from ai_abstraction.core.config.constants import ProviderType
from ai_abstraction.core.exceptions import ProviderNotImplementedError
from ai_abstraction.models.messages import NormalizedRequest
from ai_abstraction.models.responses import NormalizedResponse, StreamChunk
from ai_abstraction.providers.base_adapter import BaseProviderAdapter


class NotImplementedAdapter(BaseProviderAdapter):
    """Adapter whose every operation raises ProviderNotImplementedError."""

    async def _probe(self) -> bool:
        return False

    def _not_implemented(self) -> ProviderNotImplementedError:
        return ProviderNotImplementedError(
            f"{self.display_name} adapter not implemented",
            details={"provider": self.name},
        )

    def normalize_request(self, request: NormalizedRequest) -> dict[str, Any]:
        raise self._not_implemented()

    async def make_request(self, vendor_request: dict[str, Any], api_key: str) -> dict[str, Any]:
        raise self._not_implemented()

    async def make_stream_request(
        self, vendor_request: dict[str, Any], api_key: str
    ) -> AsyncIterator[StreamChunk]:
        raise self._not_implemented()
        yield  # pragma: no cover

    def normalize_response(
        self, vendor_response: dict[str, Any], request_id: str, response_time_ms: float
    ) -> NormalizedResponse:
        raise self._not_implemented()


class StraicoAdapter(NotImplementedAdapter):
    provider_type = ProviderType.STRAICO


class CohereAdapter(NotImplementedAdapter):
    provider_type = ProviderType.COHERE
