# tests/conftest.py
import os
import logging
from typing import List, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# test-friendly env, set before promptlab.core.config is imported
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("DEFAULT_PROVIDER", "anthropic")
os.environ.setdefault("APP_ENV", "test")

from promptlab.main import create_app
from promptlab.providers.base import ChatResult, ProviderError, StreamCallbacks
from promptlab.schemas.chat import ChatOptions, Message
from promptlab.services.chat_service import AgentChatService


class FakeChatModel:
    """Stands in for a vendor adapter; records every call it receives."""

    def __init__(self, chunks: Sequence[str] = ("Hel", "lo", " world")) -> None:
        self.chunks = list(chunks)
        self.error: Optional[Exception] = None
        self.calls: List[dict] = []

    async def chat(self, messages: Sequence[Message], options: Optional[ChatOptions] = None, *, json_mode: bool = False):
        self.calls.append({"kind": "chat", "messages": list(messages), "options": options, "json_mode": json_mode})
        if self.error:
            raise self.error
        return ChatResult(message="".join(self.chunks), usage={"total_tokens": 7})

    async def stream_chat(self, messages: Sequence[Message], callbacks: StreamCallbacks, options: Optional[ChatOptions] = None):
        self.calls.append({"kind": "stream", "messages": list(messages), "options": options})
        if self.error:
            raise self.error
        await callbacks.on_response_start()
        for c in self.chunks:
            await callbacks.on_response_chunk(c)
        await callbacks.on_response_end()
        return ChatResult(message="".join(self.chunks))


class RecordingFactory:
    def __init__(self, model: FakeChatModel) -> None:
        self.model = model
        self.providers: List[str] = []

    def __call__(self, provider, **kwargs):
        self.providers.append(provider)
        return self.model


@pytest.fixture
def fake_model():
    return FakeChatModel()


@pytest.fixture
def model_factory(fake_model):
    return RecordingFactory(fake_model)


@pytest.fixture
def chat_service(model_factory):
    return AgentChatService(model_factory=model_factory)


@pytest.fixture
def app(chat_service):
    application = create_app()
    application.state.chat_service = chat_service
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def provider_error():
    return ProviderError("rate limit exceeded", provider="anthropic", status=429, error_type="rate_limit_error")


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog
