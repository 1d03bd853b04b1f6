"""
agents decide *what* the model is told (system prompt, message shaping);
providers decide *who* answers. An agent never talks to a vendor.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from promptlab.schemas.chat import Message


def load_system_prompt(name: str) -> str:
    p = Path(__file__).resolve().parents[1] / "prompts" / f"{name}.txt"
    return p.read_text(encoding="utf-8").strip()


@dataclass
class AgentContext:
    messages: List[Message]
    provider: str
    model: Optional[str] = None
    temperature: Optional[float] = None
    prompt_content: Optional[str] = None
    prompt_title: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


class AgentBase:
    type: str = "base"
    description: str = "Base agent implementation"
    supported_features: List[str] = []

    def __init__(self, agent_config: Optional[Dict[str, Any]] = None) -> None:
        self.agent_config = dict(agent_config or {})

    def build_system_prompt(self, context: AgentContext) -> str:
        raise NotImplementedError(f"build_system_prompt must be implemented by {type(self).__name__}")

    def preprocess_messages(self, messages: List[Message], context: AgentContext) -> List[Message]:
        return messages

    def postprocess_response(self, response: str, context: AgentContext) -> str:
        return response

    def validate_context(self, context: AgentContext) -> bool:
        return True

    def get_metadata(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "name": type(self).__name__,
            "description": self.description,
            "supportedFeatures": list(self.supported_features),
            "requiresPrompt": False,
        }
