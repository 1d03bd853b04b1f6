# tests/test_providers_anthropic.py
import json

import httpx
import pytest
import respx

from promptlab.core import config
from promptlab.providers.anthropic import AnthropicChatModel, to_anthropic_format
from promptlab.providers.base import ProviderError, StreamCallbacks
from promptlab.schemas.chat import ChatOptions, Message

BASE = "https://anthropic.test"
URL = f"{BASE}/v1/messages"


def make_model():
    return AnthropicChatModel(api_key="ak-test", base_url=BASE)


def sse(*events):
    return "".join(f"event: {e['type']}\ndata: {json.dumps(e)}\n\n" for e in events).encode()


def test_convert_extracts_leading_system():
    # One leading system message goes to the top-level field; the rest keep role, content and order.
    messages = [
        Message(role="system", content="You are terse."),
        Message(role="user", content="a"),
        Message(role="assistant", content="b"),
        Message(role="user", content="c"),
    ]
    system, converted = to_anthropic_format(messages)
    assert system == "You are terse."
    assert converted == [
        {"role": "user", "content": "a"},
        {"role": "assistant", "content": "b"},
        {"role": "user", "content": "c"},
    ]


def test_convert_without_system():
    system, converted = to_anthropic_format([Message(role="user", content="hi")])
    assert system is None
    assert converted == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
@respx.mock
async def test_chat_ok():
    route = respx.post(URL).mock(return_value=httpx.Response(200, json={
        "content": [{"type": "text", "text": "Hi there"}],
        "usage": {"input_tokens": 5, "output_tokens": 3},
    }))
    messages = [Message(role="system", content="sys"), Message(role="user", content="hello")]
    result = await make_model().chat(messages, ChatOptions(model="claude-3-haiku-20240307", temperature=0.2))
    assert result.message == "Hi there"
    assert result.usage == {"input_tokens": 5, "output_tokens": 3}

    request = route.calls.last.request
    body = json.loads(request.content)
    assert body["system"] == "sys"
    assert body["messages"] == [{"role": "user", "content": "hello"}]
    assert body["max_tokens"] == 4096
    assert body["temperature"] == 0.2
    assert request.headers["x-api-key"] == "ak-test"
    assert request.headers["anthropic-version"] == "2023-06-01"


@pytest.mark.asyncio
@respx.mock
async def test_chat_without_system_omits_field():
    route = respx.post(URL).mock(return_value=httpx.Response(200, json={"content": []}))
    result = await make_model().chat([Message(role="user", content="hello")])
    body = json.loads(route.calls.last.request.content)
    assert "system" not in body
    assert body["model"] == "claude-sonnet-4-20250514"
    assert result.message == ""


@pytest.mark.asyncio
@respx.mock
async def test_chat_vendor_error():
    respx.post(URL).mock(return_value=httpx.Response(400, json={
        "type": "error",
        "error": {"type": "invalid_request_error", "message": "max_tokens: too large"},
    }))
    with pytest.raises(ProviderError) as exc:
        await make_model().chat([Message(role="user", content="x")])
    assert str(exc.value) == "max_tokens: too large"
    assert exc.value.status == 400
    assert exc.value.error_type == "invalid_request_error"


@pytest.mark.asyncio
@respx.mock
async def test_stream_with_thinking_blocks():
    # Thinking blocks drive the thinking hooks; text deltas are concatenated in order.
    respx.post(URL).mock(return_value=httpx.Response(
        200,
        content=sse(
            {"type": "message_start", "message": {"usage": {"input_tokens": 10, "output_tokens": 1}}},
            {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking", "thinking": ""}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta", "thinking": "hmm"}},
            {"type": "content_block_stop", "index": 0},
            {"type": "content_block_start", "index": 1, "content_block": {"type": "text", "text": ""}},
            {"type": "content_block_delta", "index": 1, "delta": {"type": "text_delta", "text": "Hel"}},
            {"type": "content_block_delta", "index": 1, "delta": {"type": "text_delta", "text": "lo"}},
            {"type": "content_block_stop", "index": 1},
            {"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": 7}},
            {"type": "message_stop"},
        ),
        headers={"Content-Type": "text/event-stream"},
    ))
    events = []

    async def on(kind, text=None):
        events.append((kind, text) if text is not None else (kind,))

    callbacks = StreamCallbacks(
        on_thinking_start=lambda: on("thinking_start"),
        on_thinking_chunk=lambda t: on("thinking", t),
        on_thinking_end=lambda: on("thinking_end"),
        on_response_start=lambda: on("response_start"),
        on_response_chunk=lambda t: on("chunk", t),
        on_response_end=lambda: on("response_end"),
    )
    result = await make_model().stream_chat([Message(role="user", content="hi")], callbacks)

    assert events == [
        ("thinking_start",),
        ("thinking", "hmm"),
        ("thinking_end",),
        ("response_start",),
        ("chunk", "Hel"),
        ("chunk", "lo"),
        ("response_end",),
    ]
    assert result.message == "Hello"
    assert result.usage == {"input_tokens": 10, "output_tokens": 7}


@pytest.mark.asyncio
@respx.mock
async def test_stream_error_event_raises():
    respx.post(URL).mock(return_value=httpx.Response(
        200,
        content=sse(
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "par"}},
            {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
        ),
        headers={"Content-Type": "text/event-stream"},
    ))
    with pytest.raises(ProviderError) as exc:
        await make_model().stream_chat([Message(role="user", content="hi")], StreamCallbacks())
    assert str(exc.value) == "Overloaded"
    assert exc.value.error_type == "overloaded_error"


@pytest.mark.asyncio
@respx.mock
async def test_stream_without_text_block_skips_response_hooks():
    respx.post(URL).mock(return_value=httpx.Response(
        200,
        content=sse(
            {"type": "message_start", "message": {"usage": {"input_tokens": 3}}},
            {"type": "message_stop"},
        ),
        headers={"Content-Type": "text/event-stream"},
    ))
    events = []

    async def on(kind):
        events.append(kind)

    callbacks = StreamCallbacks(
        on_response_start=lambda: on("start"),
        on_response_end=lambda: on("end"),
    )
    result = await make_model().stream_chat([Message(role="user", content="hi")], callbacks)
    assert events == []
    assert result.message == ""
    assert result.usage == {"input_tokens": 3}


@pytest.mark.asyncio
@respx.mock
async def test_stream_enables_thinking_for_reasoning_models(monkeypatch):
    monkeypatch.setattr(config, "ANTHROPIC_REASONING_MODELS", {
        "claude-3-7-sonnet-latest": {
            "thinking": True,
            "streaming_thinking": True,
            "thinking_budget": {"min": 1024, "max": 32000, "suggested": 8000},
        },
    })
    route = respx.post(URL).mock(return_value=httpx.Response(
        200,
        content=sse({"type": "message_stop"}),
        headers={"Content-Type": "text/event-stream"},
    ))
    await make_model().stream_chat(
        [Message(role="user", content="hi")],
        StreamCallbacks(),
        ChatOptions(model="claude-3-7-sonnet-latest", temperature=0.2),
    )
    body = json.loads(route.calls.last.request.content)
    assert body["stream"] is True
    assert body["thinking"] == {"type": "enabled", "budget_tokens": 8000}
    assert body["temperature"] == 1


@pytest.mark.asyncio
@respx.mock
async def test_stream_plain_model_sends_no_thinking():
    route = respx.post(URL).mock(return_value=httpx.Response(
        200,
        content=sse({"type": "message_stop"}),
        headers={"Content-Type": "text/event-stream"},
    ))
    await make_model().stream_chat(
        [Message(role="user", content="hi")],
        StreamCallbacks(),
        ChatOptions(model="claude-3-haiku-20240307", temperature=0.2),
    )
    body = json.loads(route.calls.last.request.content)
    assert "thinking" not in body
    assert body["temperature"] == 0.2
