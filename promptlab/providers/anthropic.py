import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from promptlab.core import config
from promptlab.providers.base import (
    ChatModel,
    ChatResult,
    ProviderError,
    ResolvedOptions,
    StreamCallbacks,
    iter_sse_json,
    vendor_error,
)
from promptlab.schemas.chat import ChatOptions, Message

log = logging.getLogger(__name__)


def to_anthropic_format(messages: Sequence[Message]) -> Tuple[Optional[str], List[Dict[str, str]]]:
    """Split system entries into Anthropic's top-level ``system`` field.

    Anthropic has no system role in the message array. System contents are
    joined with a blank line; user/assistant entries keep role, content and order.
    """
    system_parts: List[str] = []
    converted: List[Dict[str, str]] = []
    for m in messages:
        if m.role == "system":
            if m.content:
                system_parts.append(m.content)
        else:
            converted.append({"role": m.role, "content": m.content})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, converted


def from_anthropic_response(data: Dict[str, Any]) -> ChatResult:
    text = "".join(
        block.get("text", "")
        for block in data.get("content") or []
        if block.get("type") == "text"
    )
    return ChatResult(message=text, usage=data.get("usage"))


class AnthropicChatModel(ChatModel):
    name = "anthropic"
    default_model = config.ANTHROPIC_DEFAULT_MODEL

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(
            api_key=config.ANTHROPIC_API_KEY if api_key is None else api_key,
            base_url=base_url or config.ANTHROPIC_API_BASE_URL,
            logger=logger or log,
            timeout=timeout,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/v1/messages"

    def headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": config.ANTHROPIC_API_VERSION,
        }

    def thinking_budget(self, model: str) -> Optional[int]:
        caps = config.ANTHROPIC_REASONING_MODELS.get(model) or {}
        if not caps.get("thinking"):
            return None
        return caps.get("thinking_budget", {}).get("suggested", 4000)

    def build_payload(self, messages: Sequence[Message], opts: ResolvedOptions) -> Dict[str, Any]:
        system, converted = to_anthropic_format(messages)
        payload: Dict[str, Any] = {
            "model": opts.model,
            "messages": converted,
            "max_tokens": opts.max_tokens,
            "temperature": opts.temperature,
        }
        if system:
            payload["system"] = system
        return payload

    def _failed(self, model: str, e: Exception) -> ProviderError:
        if isinstance(e, ProviderError):
            err = e
        else:
            err = ProviderError(f"Anthropic HTTP error: {e}", provider=self.name)
        self.logger.error(
            "Anthropic API request failed: model=%s status=%s type=%s error=%s",
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
        # json_mode needs no wire change: the instruction lives in the system prompt
        opts = self.resolve_options(options)
        payload = self.build_payload(messages, opts)

        self.logger.debug(
            "sending request to Anthropic: model=%s temperature=%s messages=%d key_present=%s",
            opts.model, opts.temperature, len(messages), bool(self.api_key),
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(self.url, json=payload, headers=self.headers())
            if r.status_code >= 400:
                raise vendor_error(self.name, r)
            result = from_anthropic_response(r.json())
        except (httpx.HTTPError, ProviderError) as e:
            err = self._failed(opts.model, e)
            if err is e:
                raise
            raise err from e

        self.logger.debug("received response from Anthropic: model=%s usage=%s", opts.model, result.usage)
        return result

    async def stream_chat(
        self,
        messages: Sequence[Message],
        callbacks: StreamCallbacks,
        options: Optional[ChatOptions] = None,
    ) -> ChatResult:
        opts = self.resolve_options(options)
        payload = self.build_payload(messages, opts)
        payload["stream"] = True
        budget = self.thinking_budget(opts.model)
        if budget:
            payload["thinking"] = {"type": "enabled", "budget_tokens": budget}
            # the API requires temperature 1 with thinking enabled
            payload["temperature"] = 1

        self.logger.debug(
            "starting streaming request to Anthropic: model=%s temperature=%s messages=%d thinking=%s",
            opts.model, payload["temperature"], len(messages), bool(budget),
        )
        parts: List[str] = []
        usage: Dict[str, Any] = {}
        thinking = False
        responding = False
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async with client.stream("POST", self.url, json=payload, headers=self.headers()) as r:
                    if r.status_code >= 400:
                        await r.aread()
                        raise vendor_error(self.name, r)
                    async for event in iter_sse_json(r):
                        kind = event.get("type")
                        if kind == "error":
                            err = event.get("error") or {}
                            raise ProviderError(
                                err.get("message") or "Anthropic stream error",
                                provider=self.name,
                                error_type=err.get("type"),
                            )
                        if kind == "message_start":
                            usage.update((event.get("message") or {}).get("usage") or {})
                        elif kind == "message_delta":
                            usage.update(event.get("usage") or {})
                        elif kind == "content_block_start":
                            block_type = (event.get("content_block") or {}).get("type")
                            if block_type == "thinking":
                                thinking = True
                                await callbacks.on_thinking_start()
                            elif block_type == "text":
                                if thinking:
                                    thinking = False
                                    await callbacks.on_thinking_end()
                                if not responding:
                                    responding = True
                                    await callbacks.on_response_start()
                        elif kind == "content_block_delta":
                            delta = event.get("delta") or {}
                            if delta.get("type") == "thinking_delta":
                                if delta.get("thinking"):
                                    await callbacks.on_thinking_chunk(delta["thinking"])
                            elif delta.get("text"):
                                parts.append(delta["text"])
                                await callbacks.on_response_chunk(delta["text"])
                        elif kind == "content_block_stop":
                            if thinking:
                                thinking = False
                                await callbacks.on_thinking_end()
            if responding:
                await callbacks.on_response_end()
        except (httpx.HTTPError, ProviderError) as e:
            err = self._failed(opts.model, e)
            if err is e:
                raise
            raise err from e

        text = "".join(parts)
        self.logger.debug(
            "completed streaming from Anthropic: model=%s length=%d chunks=%d",
            opts.model, len(text), len(parts),
        )
        return ChatResult(message=text, usage=usage or None)
