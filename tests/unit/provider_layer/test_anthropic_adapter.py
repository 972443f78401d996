"""
Unit Tests for AnthropicAdapter

Tests request translation, the Messages API call and SSE event decoding
against an httpx.MockTransport.
"""

import httpx
import orjson
import pytest

from ai_abstraction.core.exceptions import (
    ProviderAPIError,
    ProviderAuthenticationError,
    ProviderNotAvailableError,
    ProviderRateLimitError,
)
from ai_abstraction.models.messages import ChatMessage, NormalizedRequest
from ai_abstraction.models.responses import FinishReason
from ai_abstraction.providers.anthropic_adapter import AnthropicAdapter, map_stop_reason

API_KEY = "sk-ant-REDACTED"


def message_body(stop_reason="end_turn"):
    return {
        "id": "msg_123",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-haiku-20240307",
        "content": [
            {"type": "text", "text": "Hello"},
            {"type": "text", "text": " world"},
        ],
        "stop_reason": stop_reason,
        "usage": {"input_tokens": 20, "output_tokens": 4},
    }


def sse(*events):
    lines = []
    for event in events:
        lines.append(f"event: {event['type']}\n".encode())
        lines.append(b"data: " + orjson.dumps(event) + b"\n\n")
    return b"".join(lines)


STREAM_EVENTS = (
    {
        "type": "message_start",
        "message": {
            "id": "msg_456",
            "model": "claude-3-haiku-20240307",
            "usage": {"input_tokens": 25, "output_tokens": 1},
        },
    },
    {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    {"type": "ping"},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hi"}},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "!"}},
    {"type": "content_block_stop", "index": 0},
    {
        "type": "message_delta",
        "delta": {"stop_reason": "max_tokens"},
        "usage": {"output_tokens": 7},
    },
    {"type": "message_stop"},
)


class RecordingTransport:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def make_adapter(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnthropicAdapter(http_client=client)


def event_stream_response(body):
    return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})


@pytest.fixture
def request_model():
    return NormalizedRequest(
        messages=(
            ChatMessage(role="system", content="Be brief."),
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello"),
            ChatMessage(role="system", content="Answer in English."),
            ChatMessage(role="user", content="How are you?"),
        ),
        model="claude-3-haiku-20240307",
        temperature=1.5,
        user_id="user-1",
    )


@pytest.mark.unit
class TestAnthropicNormalizeRequest:
    """Test normalize_request()."""

    def test_system_turns_are_hoisted(self, request_model):
        body = AnthropicAdapter().normalize_request(request_model)

        assert body["system"] == "Be brief.\n\nAnswer in English."
        assert body["messages"] == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
            {"role": "user", "content": "How are you?"},
        ]

    def test_temperature_is_clamped(self, request_model):
        body = AnthropicAdapter().normalize_request(request_model)

        assert body["temperature"] == 1.0

    def test_max_tokens_always_present(self, request_model):
        body = AnthropicAdapter().normalize_request(request_model)

        assert body["max_tokens"] == 4000

    def test_no_system_field_without_system_turns(self):
        request = NormalizedRequest(
            messages=(ChatMessage(role="user", content="Hi"),), user_id="user-1"
        )

        body = AnthropicAdapter().normalize_request(request)

        assert "system" not in body
        assert "temperature" not in body
        assert body["model"] == "claude-3-opus-20240229"


@pytest.mark.unit
@pytest.mark.asyncio
class TestAnthropicUnary:
    """Test make_request() and normalize_response()."""

    async def test_successful_message(self, request_model):
        transport = RecordingTransport(httpx.Response(200, json=message_body()))
        adapter = make_adapter(transport)

        raw = await adapter.make_request(adapter.normalize_request(request_model), API_KEY)
        response = adapter.normalize_response(raw, "req_1", 10.0)

        assert response.content == "Hello world"
        assert response.provider == "anthropic"
        assert response.usage.prompt_tokens == 20
        assert response.usage.completion_tokens == 4
        assert response.usage.total_tokens == 24
        assert response.finish_reason == FinishReason.STOP

    async def test_request_headers_and_url(self, request_model):
        transport = RecordingTransport(httpx.Response(200, json=message_body()))
        adapter = make_adapter(transport)

        await adapter.make_request(adapter.normalize_request(request_model), API_KEY)

        sent = transport.requests[0]
        assert str(sent.url) == "https://api.anthropic.com/v1/messages"
        assert sent.headers["x-api-key"] == API_KEY
        assert sent.headers["anthropic-version"] == "2023-06-01"
        assert "stream" not in orjson.loads(sent.content)

    @pytest.mark.parametrize(
        "status,error_class",
        [
            (401, ProviderAuthenticationError),
            (403, ProviderAuthenticationError),
            (429, ProviderRateLimitError),
        ],
    )
    async def test_classified_status_errors(self, request_model, status, error_class):
        adapter = make_adapter(RecordingTransport(httpx.Response(status, text="denied")))

        with pytest.raises(error_class) as exc_info:
            await adapter.make_request(adapter.normalize_request(request_model), API_KEY)

        assert exc_info.value.message == f"Anthropic API error: {status} denied"

    async def test_overloaded_error(self, request_model):
        adapter = make_adapter(RecordingTransport(httpx.Response(529, text="overloaded")))

        with pytest.raises(ProviderAPIError) as exc_info:
            await adapter.make_request(adapter.normalize_request(request_model), API_KEY)

        assert exc_info.value.status_code == 529
        assert exc_info.value.body == "overloaded"

    async def test_connection_failure(self, request_model):
        adapter = make_adapter(RecordingTransport(error=httpx.ConnectError("refused")))

        with pytest.raises(ProviderNotAvailableError):
            await adapter.make_request(adapter.normalize_request(request_model), API_KEY)


@pytest.mark.unit
@pytest.mark.asyncio
class TestAnthropicStreaming:
    """Test make_stream_request() event decoding."""

    async def test_stream_decodes_events(self, request_model):
        transport = RecordingTransport(event_stream_response(sse(*STREAM_EVENTS)))
        adapter = make_adapter(transport)

        chunks = [
            chunk
            async for chunk in adapter.make_stream_request(
                adapter.normalize_request(request_model), API_KEY
            )
        ]

        assert [(c.delta, c.content, c.done) for c in chunks] == [
            ("Hi", "Hi", False),
            ("!", "Hi!", False),
            ("", "Hi!", True),
        ]
        terminal = chunks[-1]
        assert terminal.id == "msg_456"
        assert terminal.usage.prompt_tokens == 25
        assert terminal.usage.completion_tokens == 7
        assert terminal.finish_reason == FinishReason.LENGTH
        assert orjson.loads(transport.requests[0].content)["stream"] is True

    async def test_stream_without_message_stop_still_terminates(self, request_model):
        """Test a body that ends before message_stop yields one terminal chunk with usage."""
        events = STREAM_EVENTS[:-1]
        adapter = make_adapter(RecordingTransport(event_stream_response(sse(*events))))

        chunks = [
            chunk
            async for chunk in adapter.make_stream_request(
                adapter.normalize_request(request_model), API_KEY
            )
        ]

        assert [c.done for c in chunks] == [False, False, True]
        terminal = chunks[-1]
        assert terminal.content == "Hi!"
        assert terminal.usage.prompt_tokens == 25
        assert terminal.usage.completion_tokens == 7
        assert terminal.finish_reason == FinishReason.LENGTH

    async def test_stream_error_event(self, request_model):
        events = (
            STREAM_EVENTS[0],
            {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
        )
        adapter = make_adapter(RecordingTransport(event_stream_response(sse(*events))))

        with pytest.raises(ProviderAPIError) as exc_info:
            async for _ in adapter.make_stream_request(
                adapter.normalize_request(request_model), API_KEY
            ):
                pass

        assert exc_info.value.message == "Anthropic stream error: overloaded_error Overloaded"

    async def test_stream_status_error(self, request_model):
        adapter = make_adapter(RecordingTransport(httpx.Response(401, text="bad key")))

        with pytest.raises(ProviderAuthenticationError) as exc_info:
            async for _ in adapter.make_stream_request(
                adapter.normalize_request(request_model), API_KEY
            ):
                pass

        assert exc_info.value.body == "bad key"

    async def test_stream_connection_failure(self, request_model):
        adapter = make_adapter(RecordingTransport(error=httpx.ConnectError("refused")))

        with pytest.raises(ProviderNotAvailableError):
            async for _ in adapter.make_stream_request(
                adapter.normalize_request(request_model), API_KEY
            ):
                pass


@pytest.mark.unit
class TestStopReasonMapping:
    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("end_turn", FinishReason.STOP),
            ("stop_sequence", FinishReason.STOP),
            ("max_tokens", FinishReason.LENGTH),
            ("refusal", FinishReason.CONTENT_FILTER),
            (None, FinishReason.STOP),
        ],
    )
    def test_map_stop_reason(self, reason, expected):
        assert map_stop_reason(reason) == expected
