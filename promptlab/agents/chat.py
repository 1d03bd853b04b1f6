from promptlab.agents.base import AgentBase, AgentContext

FALLBACK_SYSTEM_PROMPT = "You are a helpful assistant."


class ChatAgent(AgentBase):
    """Tests a prompt by using it verbatim as the system instruction."""

    type = "chat"
    description = "Tests prompts by using them as system instructions"
    supported_features = ["prompt_testing", "direct_system_prompt"]

    def build_system_prompt(self, context: AgentContext) -> str:
        content = (context.prompt_content or "").strip()
        if content:
            return content
        return context.extra.get("fallback_prompt") or FALLBACK_SYSTEM_PROMPT
