"""
OpenAI Provider Adapter

Implements the adapter contract on top of the official AsyncOpenAI client.

Architectural Decision: Use official SDK
- Request/response typing and SSE decoding are handled by the SDK
- SDK retries are disabled (max_retries=0): a failed candidate advances the
  fallback chain instead of being retried against the same vendor
"""

from collections.abc import AsyncIterator
from typing import Any

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from ai_abstraction.core.config.constants import ProviderType, Stage
from ai_abstraction.core.exceptions import ProviderNotAvailableError
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

_FINISH_REASONS = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "content_filter": FinishReason.CONTENT_FILTER,
}


def map_finish_reason(reason: str | None) -> FinishReason:
    # tool_calls / function_call end the turn normally
    return _FINISH_REASONS.get(reason or "stop", FinishReason.STOP)


class OpenAIAdapter(BaseProviderAdapter):
    """
    Adapter for the OpenAI chat completions API.

    STAGE-OPENAI: OpenAI adapter operations

    A short-lived AsyncOpenAI client is built per call because the API key
    belongs to the provider instance, not to the adapter.
    """

    provider_type = ProviderType.OPENAI

    def _client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=self._http_client,
        )

    async def _release(self, client: AsyncOpenAI) -> None:
        # An injected http_client is owned by the caller
        if self._http_client is None:
            await client.close()

    def normalize_request(self, request: NormalizedRequest) -> dict[str, Any]:
        """
        Build the chat completions body.

        The stream flag is not part of the body: make_stream_request sets it.
        """
        body: dict[str, Any] = {
            "model": request.model or self.catalog.default_model,
            "messages": [
                {"role": message.role.value, "content": message.content}
                for message in request.messages
            ],
        }
        if request.max_tokens is not None:
            body["max_tokens"] = request.max_tokens
        if request.temperature is not None:
            body["temperature"] = request.temperature
        return body

    async def make_request(self, vendor_request: dict[str, Any], api_key: str) -> dict[str, Any]:
        """
        Call chat.completions.create (non-streaming).

        STAGE-OPENAI.REQ: Unary call
        """
        client = self._client(api_key)
        try:
            completion = await client.chat.completions.create(**vendor_request)
            return completion.model_dump()
        except (APIStatusError, APIConnectionError) as e:
            raise self._translate_error(e) from e
        finally:
            await self._release(client)

    async def make_stream_request(
        self, vendor_request: dict[str, Any], api_key: str
    ) -> AsyncIterator[StreamChunk]:
        """
        Call chat.completions.create with stream=True.

        STAGE-OPENAI.STREAM: Streaming call

        Usage is requested via stream_options so the terminal chunk can carry
        token counts.
        """
        client = self._client(api_key)
        stream = None
        try:
            stream = await client.chat.completions.create(
                **vendor_request,
                stream=True,
                stream_options={"include_usage": True},
            )

            response_id: str | None = None
            model: str | None = vendor_request.get("model")
            content = ""
            finish_reason: str | None = None
            usage: TokenUsage | None = None

            async for chunk in stream:
                response_id = chunk.id or response_id
                model = chunk.model or model

                if chunk.usage is not None:
                    usage = TokenUsage(
                        prompt_tokens=chunk.usage.prompt_tokens,
                        completion_tokens=chunk.usage.completion_tokens,
                        total_tokens=chunk.usage.total_tokens,
                    )

                if not chunk.choices:
                    continue

                choice = chunk.choices[0]
                if choice.finish_reason:
                    finish_reason = choice.finish_reason

                delta = choice.delta.content if choice.delta else None
                if delta:
                    content += delta
                    yield StreamChunk(id=response_id, content=content, delta=delta, model=model)

            yield StreamChunk(
                id=response_id,
                content=content,
                delta="",
                done=True,
                usage=usage or TokenUsage(),
                finish_reason=map_finish_reason(finish_reason),
                model=model,
            )
        except (APIStatusError, APIConnectionError) as e:
            raise self._translate_error(e) from e
        finally:
            if stream is not None:
                await stream.close()
            await self._release(client)

    def normalize_response(
        self, vendor_response: dict[str, Any], request_id: str, response_time_ms: float
    ) -> NormalizedResponse:
        choice = vendor_response["choices"][0]
        usage = vendor_response.get("usage") or {}

        return NormalizedResponse(
            id=vendor_response["id"],
            content=(choice.get("message") or {}).get("content") or "",
            model=vendor_response["model"],
            provider=self.name,
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
            finish_reason=map_finish_reason(choice.get("finish_reason")),
            metadata=ResponseMetadata(
                request_id=request_id,
                response_time_ms=response_time_ms,
                cached=False,
                fallback_used=False,
            ),
        )

    def _translate_error(self, error: APIStatusError | APIConnectionError) -> Exception:
        """Map SDK exceptions onto the provider exception hierarchy."""
        # AuthenticationError, PermissionDeniedError and RateLimitError are APIStatusErrors
        if isinstance(error, APIStatusError):
            body = error.response.text
            log_stage(
                logger,
                Stage.ADAPTER,
                "OpenAI API error",
                level="warning",
                provider=self.name,
                status_code=error.status_code,
            )
            return self.api_error(error.status_code, body)

        log_stage(
            logger,
            Stage.ADAPTER,
            "OpenAI connection failed",
            level="warning",
            provider=self.name,
            error=str(error),
        )
        return ProviderNotAvailableError(
            "Could not connect to OpenAI",
            details={"provider": self.name, "error": str(error)},
        )

