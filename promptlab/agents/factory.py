import logging
from typing import Any, Dict, List, Optional, Type

from promptlab.agents.base import AgentBase
from promptlab.agents.chat import ChatAgent
from promptlab.agents.design import DesignAgent

log = logging.getLogger(__name__)

DEFAULT_AGENT = "chat"

AGENT_TYPES: Dict[str, Type[AgentBase]] = {
    "chat": ChatAgent,
    "design": DesignAgent,
}


def create_agent(
    agent_type: Optional[str] = None,
    agent_config: Optional[Dict[str, Any]] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> AgentBase:
    logger = logger or log
    name = (agent_type or DEFAULT_AGENT).strip().lower()
    cls = AGENT_TYPES.get(name)
    if cls is None:
        logger.warning(
            "unknown agent type %r, falling back to %s (available: %s)",
            agent_type, DEFAULT_AGENT, ", ".join(AGENT_TYPES),
        )
        return ChatAgent(agent_config)
    logger.debug("creating agent: type=%s", name)
    return cls(agent_config)


def register_agent(agent_type: str, cls: Type[AgentBase]) -> None:
    if not agent_type or not isinstance(agent_type, str):
        raise ValueError("Agent type must be a non-empty string")
    if not isinstance(cls, type) or not issubclass(cls, AgentBase):
        raise TypeError("Agent class must subclass AgentBase")
    AGENT_TYPES[agent_type.lower()] = cls
    log.info("registered agent type %s -> %s", agent_type.lower(), cls.__name__)


def available_agent_types() -> List[str]:
    return list(AGENT_TYPES)


def agent_metadata(agent_type: Optional[str]) -> Optional[Dict[str, Any]]:
    cls = AGENT_TYPES.get((agent_type or "").lower())
    if cls is None:
        return None
    return cls().get_metadata()


def all_agent_metadata() -> List[Dict[str, Any]]:
    return [cls().get_metadata() for cls in AGENT_TYPES.values()]
