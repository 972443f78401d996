"""
Chat Completion Routes

POST /chat           unary completion (JSON)
POST /chat/stream    streaming completion (SSE)
GET  /cache          response cache statistics
DELETE /cache        clear the response cache
GET  /providers/health  adapter availability plus cache statistics

SSE Event Format:
    event: chunk
    data: {"id": "...", "content": "...", "delta": "...", "done": false, ...}

    event: error
    data: {"error_type": "...", "message": "...", "request_id": "...", "details": {}}

    data: [DONE]
"""

from collections.abc import AsyncIterator
from contextlib import aclosing
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from ai_abstraction.api.dependencies import LayerDep, UserIdDep
from ai_abstraction.api.schemas import (
    CacheStatsResponse,
    ChatRequestBody,
    ProviderHealthResponse,
    SSEEvent,
)
from ai_abstraction.core.config.constants import (
    SSE_DONE_SENTINEL,
    SSE_EVENT_CHUNK,
    SSE_EVENT_ERROR,
    Stage,
)
from ai_abstraction.core.exceptions import AIAbstractionError
from ai_abstraction.core.logging.logger import get_logger, log_stage
from ai_abstraction.models.responses import NormalizedResponse, StreamingResponse as StreamElement

router = APIRouter(prefix="/ai", tags=["AI"])
logger = get_logger(__name__)


@router.post("/chat", response_model=NormalizedResponse, status_code=status.HTTP_200_OK)
async def chat(body: ChatRequestBody, layer: LayerDep, user_id: UserIdDep) -> NormalizedResponse:
    """Run a unary chat completion against the caller's provider instance."""
    log_stage(
        logger,
        Stage.API,
        "Chat request received",
        provider_id=body.provider_id,
        user_id=user_id,
        message_count=len(body.messages),
    )
    return await layer.chat_completion(
        body.provider_id,
        body.chat_request(),
        user_id=user_id,
        project_id=body.project_id,
        fallback_config=body.fallback_overrides(),
    )


@router.post(
    "/chat/stream",
    status_code=status.HTTP_200_OK,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def chat_stream(body: ChatRequestBody, layer: LayerDep, user_id: UserIdDep):
    """
    Run a streaming chat completion.

    The first element is awaited before the response starts, so
    configuration errors and chain exhaustion are reported as HTTP errors.
    Failures after that are sent as an ``error`` event.
    """
    log_stage(
        logger,
        Stage.API,
        "Chat stream request received",
        provider_id=body.provider_id,
        user_id=user_id,
        message_count=len(body.messages),
    )

    stream = layer.chat_completion_stream(
        body.provider_id,
        body.chat_request(),
        user_id=user_id,
        project_id=body.project_id,
        fallback_config=body.fallback_overrides(),
    )

    try:
        first = await anext(stream)
    except StopAsyncIteration:
        first = None
    except BaseException:
        await stream.aclose()
        raise

    return StreamingResponse(
        _event_source(stream, first),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


async def _event_source(
    stream: AsyncIterator[StreamElement], first: StreamElement | None
) -> AsyncIterator[str]:
    async with aclosing(stream):
        try:
            if first is not None:
                yield _chunk_event(first)
            async for element in stream:
                yield _chunk_event(element)
        except AIAbstractionError as e:
            log_stage(
                logger, Stage.API, "Stream failed", level="error", error_type=type(e).__name__
            )
            yield SSEEvent(event=SSE_EVENT_ERROR, data=e.to_dict()).format()
        except Exception as e:
            log_stage(
                logger,
                Stage.API,
                "Stream failed unexpectedly",
                level="error",
                error_type=type(e).__name__,
                error=str(e),
            )
            yield SSEEvent(
                event=SSE_EVENT_ERROR,
                data={"error_type": "InternalError", "message": "Stream failed"},
            ).format()

        yield SSEEvent(data=SSE_DONE_SENTINEL).format()


def _chunk_event(element: StreamElement) -> str:
    return SSEEvent(event=SSE_EVENT_CHUNK, data=element.model_dump(mode="json")).format()


@router.get("/cache", response_model=CacheStatsResponse)
async def cache_stats(layer: LayerDep) -> dict:
    return layer.get_cache_stats()


@router.delete("/cache")
async def clear_cache(layer: LayerDep) -> dict:
    layer.clear_cache()
    return {"cleared": True}


@router.get("/providers/health", response_model=ProviderHealthResponse)
async def provider_health(layer: LayerDep, user_id: UserIdDep) -> ProviderHealthResponse:
    """Check every registered adapter and report cache statistics alongside."""
    log_stage(logger, Stage.API, "Provider health request received", user_id=user_id)
    return ProviderHealthResponse(
        health=await layer.get_provider_health(),
        cache=CacheStatsResponse(**layer.get_cache_stats()),
        timestamp=datetime.now(timezone.utc),
    )
