"""
Analysis models: single-shot calls that must come back as JSON (prompt analysis)
or plain text (prompt generation). They reuse the chat adapters for transport.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from promptlab.providers.anthropic import AnthropicChatModel
from promptlab.providers.base import ChatModel, InvalidResponseError
from promptlab.providers.factory import ProviderName, normalize_provider
from promptlab.providers.openai import OpenAIChatModel
from promptlab.schemas.chat import ChatOptions, Message

log = logging.getLogger(__name__)

INVALID_JSON = "Invalid JSON response from AI model"


def strip_alternatives(result: Dict[str, Any]) -> Dict[str, Any]:
    """Drop ``alternatives`` from every suggestion, leaving all other fields as they were."""
    suggestions = result.get("suggestions")
    if not isinstance(suggestions, list):
        return result
    stripped: List[Any] = []
    for s in suggestions:
        if isinstance(s, dict):
            stripped.append({k: v for k, v in s.items() if k != "alternatives"})
        else:
            stripped.append(s)
    return {**result, "suggestions": stripped}


class AnalysisModel:
    provider: str = ""

    def __init__(self, chat_model: ChatModel, *, logger: Optional[logging.Logger] = None) -> None:
        self.chat_model = chat_model
        self.logger = logger or log

    def parse_json(self, text: str) -> Dict[str, Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            self.logger.error("failed to parse %s JSON response: %s content=%.500s", self.provider, e, text)
            raise InvalidResponseError(INVALID_JSON, provider=self.provider) from e
        if not isinstance(data, dict):
            self.logger.error("%s returned non-object JSON: %.500s", self.provider, text)
            raise InvalidResponseError(INVALID_JSON, provider=self.provider)
        return data

    async def generate_analysis(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
        *,
        include_alternatives: bool = True,
    ) -> Dict[str, Any]:
        result = await self.chat_model.chat(messages, options, json_mode=True)
        analysis = self.parse_json(result.message or "{}")
        if not include_alternatives:
            analysis = strip_alternatives(analysis)
        analysis["usage"] = result.usage
        return analysis

    async def generate_content(self, messages: Sequence[Message], options: Optional[ChatOptions] = None) -> str:
        result = await self.chat_model.chat(messages, options)
        return result.message


class OpenAIAnalysisModel(AnalysisModel):
    provider = ProviderName.OPENAI.value

    def __init__(self, chat_model: Optional[ChatModel] = None, *, logger: Optional[logging.Logger] = None) -> None:
        super().__init__(chat_model or OpenAIChatModel(logger=logger), logger=logger)


class AnthropicAnalysisModel(AnalysisModel):
    provider = ProviderName.ANTHROPIC.value

    def __init__(self, chat_model: Optional[ChatModel] = None, *, logger: Optional[logging.Logger] = None) -> None:
        super().__init__(chat_model or AnthropicChatModel(logger=logger), logger=logger)

    def parse_json(self, text: str) -> Dict[str, Any]:
        # Claude sometimes fences its JSON despite the instruction
        stripped = text.strip()
        if stripped.startswith("```"):
            stripped = stripped.strip("`")
            if stripped.startswith("json"):
                stripped = stripped[len("json"):]
        return super().parse_json(stripped.strip())


ANALYSIS_MODELS = {
    ProviderName.OPENAI: OpenAIAnalysisModel,
    ProviderName.ANTHROPIC: AnthropicAnalysisModel,
}


def create_analysis_model(provider: Optional[str] = None, *, logger: Optional[logging.Logger] = None) -> AnalysisModel:
    logger = logger or log
    name = normalize_provider(provider, logger=logger)
    logger.debug("creating analysis model: provider=%s", name.value)
    return ANALYSIS_MODELS[name](logger=logger)
