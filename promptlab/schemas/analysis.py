from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt_text: str = Field(alias="promptText")
    model: Optional[str] = None
    provider: Optional[str] = None
    analysis_aspects: Optional[List[str]] = Field(default=None, alias="analysisAspects")
    include_alternatives: bool = Field(default=True, alias="includeAlternatives")


class GenerateRequest(BaseModel):
    answers: Dict[str, Any]
    model: Optional[str] = None
    provider: Optional[str] = None


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    title: str
    suggested_tags: List[str] = Field(alias="suggestedTags")


class AnalysisFeedback(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis_id: Optional[str] = Field(default=None, alias="analysisId")
    feedback_type: Optional[str] = Field(default=None, alias="feedbackType")
    comments: Optional[str] = None
