from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

MESSAGES_REQUIRED = "Messages are required and must be an array"

Role = Literal["system", "user", "assistant"]
FrameType = Literal["info", "start", "stream", "end", "error"]


class InvalidChatRequest(ValueError):
    pass


class Message(BaseModel):
    role: Role
    content: str


class ChatOptions(BaseModel):
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=1)
    max_tokens: Optional[int] = Field(default=None, gt=0)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[Message]
    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=1)
    agent_type: Optional[str] = Field(default=None, alias="agentType")
    prompt_content: Optional[str] = Field(default=None, alias="promptContent")
    prompt_title: Optional[str] = Field(default=None, alias="promptTitle")
    fallback_prompt: Optional[str] = Field(default=None, alias="fallbackPrompt")
    # None means the client left the field out
    stream: Optional[bool] = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    usage: Optional[Dict[str, Any]] = None
    agent_type: Optional[str] = Field(default=None, alias="agentType")
    agent_metadata: Optional[Dict[str, Any]] = Field(default=None, alias="agentMetadata")


class StreamFrame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: FrameType
    content: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    agent_type: Optional[str] = Field(default=None, alias="agentType")

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_chat_request(payload: Any) -> ChatRequest:
    """Validate a raw HTTP body or WebSocket frame into a ChatRequest.

    The messages check runs before pydantic so both entry points reject a
    missing, empty or non-list ``messages`` with the same message.
    """
    if not isinstance(payload, dict):
        raise InvalidChatRequest(MESSAGES_REQUIRED)
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise InvalidChatRequest(MESSAGES_REQUIRED)
    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidChatRequest(str(e)) from e
