# tests/test_providers_openai.py
import json

import httpx
import pytest
import respx

from promptlab.providers.base import ProviderError, StreamCallbacks
from promptlab.providers.openai import OpenAIChatModel, to_openai_messages
from promptlab.schemas.chat import ChatOptions, Message

BASE = "https://openai.test/v1"
URL = f"{BASE}/chat/completions"

MESSAGES = [
    Message(role="system", content="Be brief."),
    Message(role="user", content="Hi"),
]


def make_model():
    model = OpenAIChatModel(api_key="sk-test", base_url=BASE, organization="org-1")
    model.simulated_chunk_delay = 0
    return model


def sse(*events):
    lines = [f"data: {json.dumps(e)}\n\n" for e in events] + ["data: [DONE]\n\n"]
    return "".join(lines).encode()


class Recorder:
    def __init__(self):
        self.events = []

    def callbacks(self):
        async def start():
            self.events.append(("response_start",))

        async def chunk(text):
            self.events.append(("chunk", text))

        async def end():
            self.events.append(("response_end",))

        async def t_start():
            self.events.append(("thinking_start",))

        async def t_chunk(text):
            self.events.append(("thinking", text))

        async def t_end():
            self.events.append(("thinking_end",))

        return StreamCallbacks(
            on_thinking_start=t_start,
            on_thinking_chunk=t_chunk,
            on_thinking_end=t_end,
            on_response_start=start,
            on_response_chunk=chunk,
            on_response_end=end,
        )

    @property
    def chunks(self):
        return [e[1] for e in self.events if e[0] == "chunk"]


def test_messages_pass_through_unchanged():
    # OpenAI accepts the system role inline, so nothing is rewritten.
    assert to_openai_messages(MESSAGES) == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hi"},
    ]


@pytest.mark.asyncio
@respx.mock
async def test_chat_ok():
    # Non-streaming call: default temperature applied, headers set, content and usage returned.
    route = respx.post(URL).mock(return_value=httpx.Response(200, json={
        "choices": [{"message": {"role": "assistant", "content": "hello"}}],
        "usage": {"total_tokens": 12},
    }))
    result = await make_model().chat(MESSAGES, ChatOptions(model="gpt-4o"))
    assert result.message == "hello"
    assert result.usage == {"total_tokens": 12}

    request = route.calls.last.request
    body = json.loads(request.content)
    assert body["model"] == "gpt-4o"
    assert body["temperature"] == 0.7
    assert body["messages"][0] == {"role": "system", "content": "Be brief."}
    assert "response_format" not in body
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["OpenAI-Organization"] == "org-1"


@pytest.mark.asyncio
@respx.mock
async def test_chat_json_mode_and_default_model():
    route = respx.post(URL).mock(return_value=httpx.Response(200, json={
        "choices": [{"message": {"content": "{}"}}],
    }))
    await make_model().chat(MESSAGES, json_mode=True)
    body = json.loads(route.calls.last.request.content)
    assert body["model"] == "gpt-4o"
    assert body["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
@respx.mock
async def test_chat_vendor_error_propagates():
    # Vendor error message, status and type reach the caller verbatim.
    respx.post(URL).mock(return_value=httpx.Response(401, json={
        "error": {"message": "Incorrect API key provided", "type": "invalid_request_error"},
    }))
    with pytest.raises(ProviderError) as exc:
        await make_model().chat(MESSAGES)
    assert str(exc.value) == "Incorrect API key provided"
    assert exc.value.status == 401
    assert exc.value.error_type == "invalid_request_error"
    assert exc.value.provider == "openai"


@pytest.mark.asyncio
@respx.mock
async def test_chat_transport_error_wrapped():
    respx.post(URL).mock(side_effect=httpx.ConnectError("connection refused"))
    with pytest.raises(ProviderError):
        await make_model().chat(MESSAGES)


@pytest.mark.asyncio
@respx.mock
async def test_stream_ok():
    # Fragments reach the callback in order and the result is their exact concatenation.
    respx.post(URL).mock(return_value=httpx.Response(
        200,
        content=sse(
            {"choices": [{"delta": {"role": "assistant", "content": ""}}]},
            {"choices": [{"delta": {"content": "Hel"}}]},
            {"choices": [{"delta": {"content": "lo, "}}]},
            {"choices": [{"delta": {"content": "world"}}]},
            {"choices": [], "usage": {"total_tokens": 9}},
        ),
        headers={"Content-Type": "text/event-stream"},
    ))
    rec = Recorder()
    result = await make_model().stream_chat(MESSAGES, rec.callbacks(), ChatOptions(model="gpt-4o"))
    assert rec.chunks == ["Hel", "lo, ", "world"]
    assert result.message == "".join(rec.chunks) == "Hello, world"
    assert result.usage == {"total_tokens": 9}
    assert rec.events[0] == ("response_start",)
    assert rec.events[-1] == ("response_end",)


@pytest.mark.asyncio
@respx.mock
async def test_stream_http_error():
    respx.post(URL).mock(return_value=httpx.Response(500, json={"error": {"message": "server overloaded"}}))
    with pytest.raises(ProviderError, match="server overloaded"):
        await make_model().stream_chat(MESSAGES, StreamCallbacks())


@pytest.mark.asyncio
@respx.mock
async def test_reasoning_model_emulates_stream():
    # o-series: system becomes a user instruction, no temperature, thinking placeholder,
    # then the full answer replayed in word groups.
    route = respx.post(URL).mock(return_value=httpx.Response(200, json={
        "choices": [{"message": {"content": "one two three four five"}}],
    }))
    rec = Recorder()
    result = await make_model().stream_chat(MESSAGES, rec.callbacks(), ChatOptions(model="o3-mini"))

    body = json.loads(route.calls.last.request.content)
    assert "temperature" not in body
    assert "stream" not in body
    assert body["messages"][0] == {"role": "user", "content": "System instructions: Be brief."}

    kinds = [e[0] for e in rec.events]
    assert kinds[:3] == ["thinking_start", "thinking", "thinking_end"]
    assert "o3-mini" in rec.events[1][1]
    assert rec.chunks == ["one two three", " four five"]
    assert result.message == "".join(rec.chunks)
