from promptlab.agents.base import AgentBase, AgentContext, load_system_prompt


class DesignAgent(AgentBase):
    """Prompt-design assistant; the prompt under edit is reference context, not the instruction."""

    type = "design"
    description = "Analyzes and suggests improvements for prompts"
    supported_features = ["prompt_analysis", "improvement_suggestions", "design_guidance"]

    def __init__(self, agent_config=None) -> None:
        super().__init__(agent_config)
        self.base_system_prompt = load_system_prompt("design_system")

    def build_system_prompt(self, context: AgentContext) -> str:
        prompt = self.base_system_prompt
        content = (context.prompt_content or "").strip()
        if content:
            prompt += "\n\nUser's Current Prompt:"
            if context.prompt_title:
                prompt += f'\nTitle: "{context.prompt_title}"'
            prompt += f'\nContent: """{content}"""'
            prompt += "\n\nUse this prompt as context when the user asks for analysis or improvements."
        else:
            prompt += (
                "\n\nNo specific prompt has been provided yet. "
                "Help the user understand prompt design principles and ask for their prompt "
                "when they're ready for specific analysis."
            )
        return prompt
