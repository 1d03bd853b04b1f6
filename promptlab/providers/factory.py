import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from promptlab.core import config
from promptlab.providers.anthropic import AnthropicChatModel
from promptlab.providers.base import ChatModel
from promptlab.providers.openai import OpenAIChatModel

log = logging.getLogger(__name__)


class ProviderName(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


ModelFactory = Callable[..., ChatModel]

CHAT_MODELS: Dict[ProviderName, Callable[..., ChatModel]] = {
    ProviderName.OPENAI: OpenAIChatModel,
    ProviderName.ANTHROPIC: AnthropicChatModel,
}


# used when DEFAULT_PROVIDER itself names no known provider
FALLBACK_PROVIDER = ProviderName.ANTHROPIC


def normalize_provider(provider: Optional[str], *, logger: Optional[logging.Logger] = None) -> ProviderName:
    """Map a client-supplied provider name onto a known provider.

    Unknown names resolve to the configured default with a warning, and a
    misconfigured default resolves to ``FALLBACK_PROVIDER``; a bad selector
    never fails the request.
    """
    logger = logger or log
    name = (provider or config.DEFAULT_PROVIDER or "").strip().lower()
    if name in available_providers():
        return ProviderName(name)

    default = (config.DEFAULT_PROVIDER or "").strip().lower()
    fallback = ProviderName(default) if default in available_providers() else FALLBACK_PROVIDER
    logger.warning(
        "unknown provider %r, using %r (available: %s)",
        provider, fallback.value, ", ".join(available_providers()),
    )
    return fallback


def create_model(provider: Optional[str] = None, *, logger: Optional[logging.Logger] = None) -> ChatModel:
    logger = logger or log
    name = normalize_provider(provider, logger=logger)
    logger.debug("creating chat model: provider=%s", name.value)
    return CHAT_MODELS[name](logger=logger)


def available_providers() -> List[str]:
    return list(config.PROVIDERS_AVAILABLE)


def available_models(provider: Optional[str] = None) -> List[str]:
    name = normalize_provider(provider)
    return list(config.MODEL_CATALOG[name.value]["models"])


def provider_display_name(provider: str) -> str:
    name = (provider or "").lower()
    return config.PROVIDER_DISPLAY_NAMES.get(name, name)


def model_display_name(provider: Optional[str], model: str) -> str:
    name = normalize_provider(provider)
    return config.MODEL_CATALOG[name.value]["models"].get(model, model)


def resolve_provider_for_model(model: Optional[str]) -> str:
    """Pick the provider that serves ``model``; the default provider when unknown."""
    if model:
        for name, entry in config.MODEL_CATALOG.items():
            if model in entry["models"]:
                return name
        if model.startswith("claude"):
            return ProviderName.ANTHROPIC.value
        if model.startswith(("gpt-", "o1", "o3", "o4")):
            return ProviderName.OPENAI.value
    return config.DEFAULT_PROVIDER
