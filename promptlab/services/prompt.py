from typing import Any, Dict, Iterable, List, Optional

DEFAULT_ASPECTS = ["clarity", "conciseness", "context", "specificity", "formatting"]

PROMPT_GENERATION_SYSTEM = """You are an expert AI prompt engineer. Your task is to create a well-structured, \
effective prompt based on the questionnaire answers provided.
Create a prompt that matches the requirements in the questionnaire answers exactly.
Format your response as a complete, well-structured markdown document with appropriate \
headings and sections.
Focus on clarity, specificity, and providing enough context for the AI to understand \
the request precisely.
The prompt should be ready to use without further modification."""

ANALYSIS_TEMPLATES: List[Dict[str, Any]] = [
    {
        "id": "general",
        "name": "General Purpose",
        "description": "Comprehensive analysis of all aspects of your prompt",
        "aspects": list(DEFAULT_ASPECTS),
    },
    {
        "id": "coding",
        "name": "Code Generation",
        "description": "Optimized for prompts that ask for code generation",
        "aspects": ["clarity", "specificity", "context"],
    },
    {
        "id": "creative",
        "name": "Creative Writing",
        "description": "For prompts that generate creative or narrative content",
        "aspects": ["clarity", "context", "specificity"],
    },
    {
        "id": "concise",
        "name": "Conciseness",
        "description": "Focus on making your prompt as concise as possible",
        "aspects": ["conciseness", "clarity"],
    },
]

_PURPOSES = {
    "information": "Information Extraction",
    "generation": "Content Generation",
    "transformation": "Content Transformation",
    "analysis": "Analysis & Reasoning",
    "conversation": "Conversation Design",
}

_TYPES = {
    "general": "General Purpose",
    "coding": "Code Generation",
    "creative": "Creative Writing",
    "analytical": "Analytical",
    "instructional": "Instructional",
    "conversational": "Conversational",
}


def build_analysis_system_prompt(aspects: Optional[Iterable[str]] = None) -> str:
    focus = ", ".join(aspects or DEFAULT_ASPECTS)
    return f"""You're an expert prompt engineer. Analyze the prompt and provide constructive feedback.
Focus on these aspects: {focus}.

For your analysis, provide:
1. An overall score (0-100)
2. A brief summary of the prompt's strengths and weaknesses
3. Specific suggestions for improvement, with:
   - The issue identified
   - The reason it's problematic
   - A specific replacement or addition
   - One or more alternative suggestions when relevant

Format your response as valid JSON with this structure:
{{
  "overallScore": number,
  "summary": "brief overall assessment",
  "suggestions": [
    {{
      "category": "one of: clarity, conciseness, context, specificity, formatting",
      "title": "short issue description",
      "description": "detailed explanation",
      "originalText": "text to be improved (if applicable)",
      "replacementText": "suggested improvement",
      "alternatives": [
        {{ "text": "first alternative" }},
        {{ "text": "second alternative" }}
      ]
    }}
  ]
}}
Respond with the JSON object only."""


def format_questionnaire(answers: Dict[str, Any]) -> str:
    lines: List[str] = []
    for key, value in answers.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


def readable_purpose(purpose_id: Optional[str]) -> str:
    if not purpose_id:
        return "General"
    return _PURPOSES.get(purpose_id, purpose_id[:1].upper() + purpose_id[1:])


def readable_type(type_id: Optional[str]) -> str:
    if not type_id:
        return "Custom"
    return _TYPES.get(type_id, type_id[:1].upper() + type_id[1:])


def title_from_content(content: str, answers: Optional[Dict[str, Any]] = None) -> str:
    for line in content.split("\n"):
        if line.startswith("# "):
            return line[2:].strip()
    if answers:
        purpose = answers.get("promptPurpose")
        kind = answers.get("promptType")
        if purpose and kind:
            return f"{readable_type(kind)} {readable_purpose(purpose)} Prompt"
        if purpose:
            return f"{readable_purpose(purpose)} Prompt"
        if kind:
            return f"{readable_type(kind)} Prompt"
    return "Generated Prompt"


def tags_from_answers(answers: Dict[str, Any], limit: int = 5) -> List[str]:
    tags: List[str] = []
    for key in ("promptType", "promptPurpose", "audience", "tone"):
        if answers.get(key):
            tags.append(str(answers[key]))
    components = answers.get("components")
    if isinstance(components, list):
        for c in components:
            if c not in tags:
                tags.append(str(c))
    return tags[:limit]
