import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from promptlab.core import config
from promptlab.providers.base import (
    ChatModel,
    ChatResult,
    ProviderError,
    ResolvedOptions,
    StreamCallbacks,
    iter_sse_json,
    simulate_streaming,
    vendor_error,
)
from promptlab.schemas.chat import ChatOptions, Message

log = logging.getLogger(__name__)

THINKING_PLACEHOLDER = "\n".join([
    "🤔 {model} is reasoning through this problem...",
    "",
    "Note: OpenAI reasoning models perform internal thinking that is not visible",
    "in the API response. The model is analyzing the request, considering",
    "different approaches, and formulating the best response.",
])


def to_openai_messages(messages: Sequence[Message], *, reasoning: bool = False) -> List[Dict[str, str]]:
    # reasoning models reject the system role
    out: List[Dict[str, str]] = []
    for m in messages:
        if reasoning and m.role == "system":
            out.append({"role": "user", "content": f"System instructions: {m.content}"})
        else:
            out.append({"role": m.role, "content": m.content})
    return out


class OpenAIChatModel(ChatModel):
    name = "openai"
    default_model = config.OPENAI_DEFAULT_MODEL

    # pause between emulated chunks for reasoning models
    simulated_chunk_delay = 0.05

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(
            api_key=config.OPENAI_API_KEY if api_key is None else api_key,
            base_url=base_url or config.OPENAI_API_BASE_URL,
            logger=logger or log,
            timeout=timeout,
        )
        self.organization = config.OPENAI_ORGANIZATION if organization is None else organization

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def headers(self) -> Dict[str, str]:
        h = {"Authorization": f"Bearer {self.api_key}"}
        if self.organization:
            h["OpenAI-Organization"] = self.organization
        return h

    def supports_thinking(self, model: str) -> bool:
        return bool(config.OPENAI_REASONING_MODELS.get(model, {}).get("thinking"))

    def build_payload(
        self,
        messages: Sequence[Message],
        opts: ResolvedOptions,
        options: Optional[ChatOptions],
    ) -> Dict[str, Any]:
        reasoning = self.supports_thinking(opts.model)
        payload: Dict[str, Any] = {
            "model": opts.model,
            "messages": to_openai_messages(messages, reasoning=reasoning),
        }
        # reasoning models run with fixed sampling parameters
        if not reasoning:
            payload["temperature"] = opts.temperature
            if options is not None and options.max_tokens:
                payload["max_tokens"] = options.max_tokens
        return payload

    def _failed(self, model: str, e: Exception) -> ProviderError:
        if isinstance(e, ProviderError):
            err = e
        else:
            err = ProviderError(f"OpenAI HTTP error: {e}", provider=self.name)
        self.logger.error(
            "OpenAI API request failed: model=%s status=%s type=%s error=%s",
            model, err.status, err.error_type, err,
        )
        return err

    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
        *,
        json_mode: bool = False,
    ) -> ChatResult:
        opts = self.resolve_options(options)
        payload = self.build_payload(messages, opts, options)
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        self.logger.debug(
            "sending request to OpenAI: model=%s temperature=%s messages=%d",
            opts.model, payload.get("temperature"), len(messages),
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(self.url, json=payload, headers=self.headers())
            if r.status_code >= 400:
                raise vendor_error(self.name, r)
            data = r.json()
            choices = data.get("choices") or []
            if not choices:
                raise ProviderError("Unexpected response from OpenAI: no choices", provider=self.name)
        except (httpx.HTTPError, ProviderError) as e:
            err = self._failed(opts.model, e)
            if err is e:
                raise
            raise err from e

        content = (choices[0].get("message") or {}).get("content") or ""
        self.logger.debug("received response from OpenAI: model=%s usage=%s", opts.model, data.get("usage"))
        return ChatResult(message=content, usage=data.get("usage"))

    async def stream_chat(
        self,
        messages: Sequence[Message],
        callbacks: StreamCallbacks,
        options: Optional[ChatOptions] = None,
    ) -> ChatResult:
        opts = self.resolve_options(options)
        if self.supports_thinking(opts.model):
            return await self._stream_reasoning(messages, callbacks, options, opts)

        payload = self.build_payload(messages, opts, options)
        payload["stream"] = True
        payload["stream_options"] = {"include_usage": True}

        self.logger.debug(
            "starting streaming request to OpenAI: model=%s temperature=%s messages=%d",
            opts.model, opts.temperature, len(messages),
        )
        parts: List[str] = []
        usage: Optional[Dict[str, Any]] = None
        try:
            await callbacks.on_response_start()
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async with client.stream("POST", self.url, json=payload, headers=self.headers()) as r:
                    if r.status_code >= 400:
                        await r.aread()
                        raise vendor_error(self.name, r)
                    async for event in iter_sse_json(r):
                        err = event.get("error")
                        if err:
                            message = err.get("message") if isinstance(err, dict) else str(err)
                            raise ProviderError(message, provider=self.name)
                        if event.get("usage"):
                            usage = event["usage"]
                        choices = event.get("choices") or []
                        if not choices:
                            continue
                        content = (choices[0].get("delta") or {}).get("content") or ""
                        if content:
                            parts.append(content)
                            await callbacks.on_response_chunk(content)
            await callbacks.on_response_end()
        except (httpx.HTTPError, ProviderError) as e:
            err = self._failed(opts.model, e)
            if err is e:
                raise
            raise err from e

        text = "".join(parts)
        self.logger.debug(
            "completed streaming from OpenAI: model=%s length=%d chunks=%d",
            opts.model, len(text), len(parts),
        )
        return ChatResult(message=text, usage=usage)

    async def _stream_reasoning(
        self,
        messages: Sequence[Message],
        callbacks: StreamCallbacks,
        options: Optional[ChatOptions],
        opts: ResolvedOptions,
    ) -> ChatResult:
        # reasoning models don't stream; emit a placeholder, then replay the answer in chunks
        await callbacks.on_thinking_start()
        await callbacks.on_thinking_chunk(THINKING_PLACEHOLDER.format(model=opts.model))

        result = await self.chat(messages, options)

        await callbacks.on_thinking_end()
        await callbacks.on_response_start()
        if result.message:
            await simulate_streaming(result.message, callbacks.on_response_chunk, delay=self.simulated_chunk_delay)
        await callbacks.on_response_end()

        self.logger.debug("completed reasoning request to OpenAI: model=%s length=%d", opts.model, len(result.message))
        return result
