import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from promptlab.agents.base import AgentBase, AgentContext
from promptlab.agents.factory import create_agent
from promptlab.core import config
from promptlab.providers.base import ChatResult, StreamCallbacks
from promptlab.providers.factory import ModelFactory, create_model
from promptlab.schemas.chat import ChatOptions, ChatRequest, ChatResponse, Message

log = logging.getLogger(__name__)

AgentFactory = Callable[..., AgentBase]


class AgentChatService:
    """Runs one chat exchange: agent shapes the conversation, a provider model answers it.

    Nothing here is shared between requests; every call builds its own
    context, agent and model instance.
    """

    def __init__(
        self,
        *,
        model_factory: ModelFactory = create_model,
        agent_factory: AgentFactory = create_agent,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.model_factory = model_factory
        self.agent_factory = agent_factory
        self.logger = logger or log

    def resolve(self, req: ChatRequest) -> Tuple[str, str, str]:
        provider = (req.provider or config.DEFAULT_PROVIDER).lower()
        model = req.model or ""
        agent_type = (req.agent_type or "chat").lower()
        return provider, model, agent_type

    def _prepare(self, req: ChatRequest) -> Tuple[AgentBase, AgentContext, List[Message], ChatOptions]:
        provider, model, agent_type = self.resolve(req)
        agent = self.agent_factory(agent_type, logger=self.logger)
        context = AgentContext(
            messages=list(req.messages),
            provider=provider,
            model=model or None,
            temperature=req.temperature,
            prompt_content=req.prompt_content,
            prompt_title=req.prompt_title,
            extra={"fallback_prompt": req.fallback_prompt} if req.fallback_prompt else {},
        )
        if not agent.validate_context(context):
            raise ValueError(f"Invalid context for {agent_type} agent")

        system_prompt = agent.build_system_prompt(context)
        processed = agent.preprocess_messages(context.messages, context)
        final_messages = [Message(role="system", content=system_prompt), *processed]
        options = ChatOptions(model=model or None, temperature=req.temperature)

        self.logger.debug(
            "agent chat request: agent=%s provider=%s model=%s messages=%d has_prompt=%s system_len=%d",
            agent.type, provider, model, len(final_messages), bool(req.prompt_content), len(system_prompt),
        )
        return agent, context, final_messages, options

    def _respond(self, agent: AgentBase, context: AgentContext, result: ChatResult) -> ChatResponse:
        message = agent.postprocess_response(result.message, context)
        return ChatResponse(
            message=message,
            usage=result.usage,
            agent_type=agent.type,
            agent_metadata=agent.get_metadata(),
        )

    def _log_failure(self, kind: str, req: ChatRequest) -> None:
        provider, model, agent_type = self.resolve(req)
        self.logger.exception(
            "agent %s failed: agent=%s provider=%s model=%s messages=%d",
            kind, agent_type, provider, model, len(req.messages),
        )

    async def process_chat(self, req: ChatRequest) -> ChatResponse:
        try:
            agent, context, messages, options = self._prepare(req)
            chat_model = self.model_factory(context.provider, logger=self.logger)
            result = await chat_model.chat(messages, options)
            response = self._respond(agent, context, result)
        except Exception:
            self._log_failure("chat", req)
            raise
        self.logger.info(
            "agent chat completed: agent=%s provider=%s model=%s length=%d tokens=%s",
            response.agent_type, context.provider, context.model, len(response.message), _total_tokens(response.usage),
        )
        return response

    async def process_streaming_chat(self, req: ChatRequest, callbacks: StreamCallbacks) -> ChatResponse:
        try:
            agent, context, messages, options = self._prepare(req)
            chat_model = self.model_factory(context.provider, logger=self.logger)
            result = await chat_model.stream_chat(messages, callbacks, options)
            response = self._respond(agent, context, result)
        except Exception:
            self._log_failure("streaming chat", req)
            raise
        self.logger.info(
            "agent streaming chat completed: agent=%s provider=%s model=%s length=%d",
            response.agent_type, context.provider, context.model, len(response.message),
        )
        return response


def _total_tokens(usage: Optional[Dict[str, Any]]) -> Optional[int]:
    if not usage:
        return None
    if "total_tokens" in usage:
        return usage["total_tokens"]
    # anthropic reports input/output separately
    if "input_tokens" in usage or "output_tokens" in usage:
        return int(usage.get("input_tokens") or 0) + int(usage.get("output_tokens") or 0)
    return None
