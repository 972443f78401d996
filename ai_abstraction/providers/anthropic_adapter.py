"""
Anthropic Provider Adapter

Implements the adapter contract against the Anthropic Messages API using
httpx directly, including server-sent event parsing for streaming.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import orjson

from ai_abstraction.core.config.constants import ANTHROPIC_API_VERSION, ProviderType, Stage
from ai_abstraction.core.exceptions import ProviderAPIError, ProviderNotAvailableError
from ai_abstraction.core.logging.logger import get_logger, log_stage
from ai_abstraction.models.messages import NormalizedRequest
from ai_abstraction.models.responses import (
    FinishReason,
    NormalizedResponse,
    ResponseMetadata,
    StreamChunk,
    TokenUsage,
)
from ai_abstraction.providers.base_adapter import BaseProviderAdapter

logger = get_logger(__name__)

# The Messages API accepts temperature in [0, 1]
_MAX_TEMPERATURE = 1.0

_STOP_REASONS = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "refusal": FinishReason.CONTENT_FILTER,
}


def map_stop_reason(reason: str | None) -> FinishReason:
    return _STOP_REASONS.get(reason or "end_turn", FinishReason.STOP)


class AnthropicAdapter(BaseProviderAdapter):
    """
    Adapter for the Anthropic Messages API.

    STAGE-ANTHROPIC: Anthropic adapter operations

    System turns are hoisted into the top-level ``system`` field; the
    remaining turns are sent as ``messages``.
    """

    provider_type = ProviderType.ANTHROPIC

    def __init__(self, *args, api_version: str = ANTHROPIC_API_VERSION, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/messages"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }

    @asynccontextmanager
    async def _client(self):
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    def normalize_request(self, request: NormalizedRequest) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": request.model or self.catalog.default_model,
            "max_tokens": request.max_tokens or self.catalog.default_max_tokens,
            "messages": [
                {"role": message.role.value, "content": message.content}
                for message in request.conversation
            ],
        }
        if request.temperature is not None:
            body["temperature"] = min(request.temperature, _MAX_TEMPERATURE)

        system_prompt = request.system_prompt
        if system_prompt is not None:
            body["system"] = system_prompt
        return body

    async def make_request(self, vendor_request: dict[str, Any], api_key: str) -> dict[str, Any]:
        """
        POST /messages (non-streaming).

        STAGE-ANTHROPIC.REQ: Unary call
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    self.messages_url,
                    headers=self._headers(api_key),
                    json=vendor_request,
                    timeout=self.timeout,
                )
        except httpx.TransportError as e:
            raise self._unavailable(e) from e

        if response.status_code >= 400:
            raise self.api_error(response.status_code, response.text)

        return response.json()

    async def make_stream_request(
        self, vendor_request: dict[str, Any], api_key: str
    ) -> AsyncIterator[StreamChunk]:
        """
        POST /messages with stream=true and decode the event stream.

        STAGE-ANTHROPIC.STREAM: Streaming call

        Events handled: message_start (id, model, input tokens),
        content_block_delta (text), message_delta (stop reason, output
        tokens), message_stop (terminal chunk) and error.
        """
        response_id: str | None = None
        model: str | None = vendor_request.get("model")
        content = ""
        stop_reason: str | None = None
        input_tokens = 0
        output_tokens = 0

        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    self.messages_url,
                    headers=self._headers(api_key),
                    json={**vendor_request, "stream": True},
                    timeout=self.timeout,
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        raise self.api_error(response.status_code, response.text)

                    async for line in response.aiter_lines():
                        if not line.startswith("data:"):
                            continue

                        event = orjson.loads(line[5:].strip())
                        event_type = event.get("type")

                        if event_type == "message_start":
                            message = event.get("message") or {}
                            response_id = message.get("id", response_id)
                            model = message.get("model", model)
                            input_tokens = (message.get("usage") or {}).get("input_tokens", 0)

                        elif event_type == "content_block_delta":
                            delta = (event.get("delta") or {}).get("text") or ""
                            if delta:
                                content += delta
                                yield StreamChunk(
                                    id=response_id, content=content, delta=delta, model=model
                                )

                        elif event_type == "message_delta":
                            stop_reason = (event.get("delta") or {}).get("stop_reason", stop_reason)
                            output_tokens = (event.get("usage") or {}).get(
                                "output_tokens", output_tokens
                            )

                        elif event_type == "message_stop":
                            break

                        elif event_type == "error":
                            error = event.get("error") or {}
                            raise ProviderAPIError(
                                f"Anthropic stream error: {error.get('type', 'error')} "
                                f"{error.get('message', '')}".rstrip(),
                                details={"provider": self.name, "error": error},
                            )

                    # Terminal chunk, with or without message_stop
                    yield StreamChunk(
                        id=response_id,
                        content=content,
                        delta="",
                        done=True,
                        usage=TokenUsage.from_counts(input_tokens, output_tokens),
                        finish_reason=map_stop_reason(stop_reason),
                        model=model,
                    )
        except httpx.TransportError as e:
            raise self._unavailable(e) from e

    def normalize_response(
        self, vendor_response: dict[str, Any], request_id: str, response_time_ms: float
    ) -> NormalizedResponse:
        text = "".join(
            block.get("text", "")
            for block in vendor_response.get("content") or []
            if block.get("type", "text") == "text"
        )
        usage = vendor_response.get("usage") or {}

        return NormalizedResponse(
            id=vendor_response["id"],
            content=text,
            model=vendor_response["model"],
            provider=self.name,
            usage=TokenUsage.from_counts(
                usage.get("input_tokens", 0), usage.get("output_tokens", 0)
            ),
            finish_reason=map_stop_reason(vendor_response.get("stop_reason")),
            metadata=ResponseMetadata(
                request_id=request_id,
                response_time_ms=response_time_ms,
                cached=False,
                fallback_used=False,
            ),
        )

    def _unavailable(self, error: httpx.TransportError) -> ProviderNotAvailableError:
        log_stage(
            logger,
            Stage.ADAPTER,
            "Anthropic connection failed",
            level="warning",
            provider=self.name,
            error_type=type(error).__name__,
            error=str(error),
        )
        return ProviderNotAvailableError(
            "Could not connect to Anthropic",
            details={"provider": self.name, "error": str(error)},
        )
