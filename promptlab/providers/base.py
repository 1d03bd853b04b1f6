# provider contract shared by every vendor adapter
# callers (agent service, analysis models) only see Message in, ChatResult out

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from promptlab.core import config
from promptlab.schemas.chat import ChatOptions, Message


class ProviderError(Exception):
    """Vendor or transport failure, message passed through verbatim."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status: Optional[int] = None,
        error_type: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status = status
        self.error_type = error_type


class InvalidResponseError(ProviderError):
    pass


ChunkHandler = Callable[[str], Awaitable[None]]
Hook = Callable[[], Awaitable[None]]


async def _noop(*_args: Any) -> None:
    return None


@dataclass
class StreamCallbacks:
    on_thinking_start: Hook = _noop
    on_thinking_chunk: ChunkHandler = _noop
    on_thinking_end: Hook = _noop
    on_response_start: Hook = _noop
    on_response_chunk: ChunkHandler = _noop
    on_response_end: Hook = _noop


@dataclass
class ChatResult:
    message: str
    usage: Optional[Dict[str, Any]] = None


@dataclass
class ResolvedOptions:
    model: str
    temperature: float
    max_tokens: int


def vendor_error(provider: str, response: httpx.Response) -> ProviderError:
    """Build a ProviderError from a non-2xx vendor response (body must be read)."""
    message = f"{provider} HTTP error: {response.status_code}"
    error_type = None
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            message = err.get("message") or message
            error_type = err.get("type")
        elif isinstance(err, str) and err:
            message = err
    return ProviderError(message, provider=provider, status=response.status_code, error_type=error_type)


class ChatModel(ABC):
    name: str = ""
    default_model: str = ""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        logger: Optional[logging.Logger] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.logger = logger or logging.getLogger(__name__)
        self.timeout = httpx.Timeout(timeout or config.REQUEST_TIMEOUT, connect=10.0)

    def resolve_options(self, options: Optional[ChatOptions]) -> ResolvedOptions:
        opts = options or ChatOptions()
        return ResolvedOptions(
            model=opts.model or self.default_model,
            temperature=opts.temperature if opts.temperature is not None else config.TEMPERATURE,
            max_tokens=opts.max_tokens or config.MAX_TOKENS,
        )

    @abstractmethod
    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
        *,
        json_mode: bool = False,
    ) -> ChatResult:
        raise NotImplementedError

    @abstractmethod
    async def stream_chat(
        self,
        messages: Sequence[Message],
        callbacks: StreamCallbacks,
        options: Optional[ChatOptions] = None,
    ) -> ChatResult:
        raise NotImplementedError


async def iter_sse_json(response: httpx.Response) -> AsyncIterator[Dict[str, Any]]:
    """Yield the JSON payload of every ``data:`` line of a server-sent-event stream."""
    async for line in response.aiter_lines():
        if not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if not data or data == "[DONE]":
            continue
        try:
            yield json.loads(data)
        except json.JSONDecodeError:
            continue


async def simulate_streaming(
    content: str,
    on_chunk: ChunkHandler,
    *,
    words_per_chunk: int = 3,
    delay: float = 0.05,
) -> None:
    """Re-emit a complete text as word groups; the chunks concatenate back to ``content``."""
    words: List[str] = content.split(" ")
    for i in range(0, len(words), words_per_chunk):
        chunk = " ".join(words[i:i + words_per_chunk])
        await on_chunk(chunk if i == 0 else " " + chunk)
        if delay and i + words_per_chunk < len(words):
            await asyncio.sleep(delay)
