# centralized configuration loader
# runs load_dotenv() to read .env
# provider catalog (models, display names, defaults) lives here so adapters and routes share one source

import os
from typing import Any, Dict, List
from dotenv import load_dotenv

load_dotenv()

# App
APP_ENV = os.getenv("APP_ENV", os.getenv("NODE_ENV", "development"))
IS_DEV = APP_ENV == "development"
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if IS_DEV else "INFO").upper()

# Providers
PROVIDERS_AVAILABLE: List[str] = ["openai", "anthropic"]
DEFAULT_PROVIDER = os.getenv("DEFAULT_PROVIDER", "anthropic").lower()
PROVIDER_DISPLAY_NAMES: Dict[str, str] = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
}

# Generation defaults
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.7"))
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "4096"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "120"))

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_API_BASE_URL = os.getenv("OPENAI_API_BASE_URL", "https://api.openai.com/v1")
OPENAI_ORGANIZATION = os.getenv("OPENAI_ORGANIZATION", "")
OPENAI_DEFAULT_MODEL = "gpt-4o"
OPENAI_MODELS: Dict[str, str] = {
    "o4-mini": "o4-mini (Latest Reasoning) 🧠",
    "o3": "o3 (Advanced Reasoning) 🧠",
    "o3-mini": "o3-mini (Reasoning) 🧠",
    "o1-preview": "o1-preview (Reasoning) 🧠",
    "o1-mini": "o1-mini (Reasoning) 🧠",
    "gpt-4o": "GPT-4o",
    "gpt-4-turbo": "GPT-4 Turbo",
    "gpt-4": "GPT-4",
    "gpt-3.5-turbo": "GPT-3.5 Turbo",
}


def _reasoning(min_budget: int, max_budget: int, suggested: int) -> Dict[str, Any]:
    return {
        "thinking": True,
        "streaming_thinking": False,
        "thinking_budget": {"min": min_budget, "max": max_budget, "suggested": suggested},
    }


# models without an entry don't reason
OPENAI_REASONING_MODELS: Dict[str, Dict[str, Any]] = {
    "o4-mini": _reasoning(1000, 50000, 4000),
    "o3": _reasoning(1000, 100000, 10000),
    "o3-mini": _reasoning(1000, 50000, 4000),
    "o1-preview": _reasoning(25000, 25000, 25000),
    "o1-mini": _reasoning(25000, 25000, 25000),
}

# Anthropic
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_API_BASE_URL = os.getenv("ANTHROPIC_API_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_DEFAULT_MODEL = "claude-sonnet-4-20250514"
ANTHROPIC_MODELS: Dict[str, str] = {
    "claude-opus-4-20250514": "Claude 4 Opus (Latest)",
    "claude-sonnet-4-20250514": "Claude 4 Sonnet (Latest)",
    "claude-3-7-sonnet-latest": "Claude 3.7 Sonnet",
    "claude-3-5-sonnet-latest": "Claude 3.5 Sonnet",
    "claude-3-5-haiku-latest": "Claude 3.5 Haiku",
    "claude-3-opus-20240229": "Claude 3 Opus",
    "claude-3-sonnet-20240229": "Claude 3 Sonnet",
    "claude-3-haiku-20240307": "Claude 3 Haiku",
}
ANTHROPIC_REASONING_MODELS: Dict[str, Dict[str, Any]] = {}

MODEL_CATALOG: Dict[str, Dict[str, Any]] = {
    "openai": {"models": OPENAI_MODELS, "default": OPENAI_DEFAULT_MODEL},
    "anthropic": {"models": ANTHROPIC_MODELS, "default": ANTHROPIC_DEFAULT_MODEL},
}


def missing_api_keys() -> List[str]:
    keys = {"openai": OPENAI_API_KEY, "anthropic": ANTHROPIC_API_KEY}
    return [name for name in PROVIDERS_AVAILABLE if not keys.get(name)]


def provider_config() -> Dict[str, Any]:
    """Provider/model catalog in the shape the frontend dropdowns expect."""
    models: Dict[str, Any] = {}
    for name in PROVIDERS_AVAILABLE:
        entry = MODEL_CATALOG.get(name)
        if not entry:
            continue
        models[name] = {
            "available": list(entry["models"]),
            "default": entry["default"],
            "displayNames": dict(entry["models"]),
        }
    return {
        "providers": {
            "available": list(PROVIDERS_AVAILABLE),
            "default": DEFAULT_PROVIDER,
            "displayNames": dict(PROVIDER_DISPLAY_NAMES),
        },
        "models": models,
    }
