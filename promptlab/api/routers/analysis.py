import logging
from typing import Any, Callable

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from promptlab.api.deps import get_analysis_factory
from promptlab.providers.analysis import AnalysisModel
from promptlab.providers.factory import resolve_provider_for_model
from promptlab.schemas.analysis import AnalysisFeedback, AnalyzeRequest, GenerateRequest, GenerateResponse
from promptlab.schemas.chat import ChatOptions, Message
from promptlab.services.prompt import (
    ANALYSIS_TEMPLATES,
    PROMPT_GENERATION_SYSTEM,
    build_analysis_system_prompt,
    format_questionnaire,
    tags_from_answers,
    title_from_content,
)

router = APIRouter(prefix="/api/ai-analysis", tags=["analysis"])
logger = logging.getLogger(__name__)

AnalysisFactory = Callable[..., AnalysisModel]


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": message})


@router.post("/analyze")
async def analyze_prompt(
    payload: Any = Body(default=None),
    factory: AnalysisFactory = Depends(get_analysis_factory),
):
    if not isinstance(payload, dict) or not isinstance(payload.get("promptText"), str) or not payload["promptText"]:
        return _bad_request("Prompt text is required")
    try:
        req = AnalyzeRequest.model_validate(payload)
    except ValidationError as e:
        return _bad_request(str(e))

    provider = req.provider or resolve_provider_for_model(req.model)
    messages = [
        Message(role="system", content=build_analysis_system_prompt(req.analysis_aspects)),
        Message(role="user", content=req.prompt_text),
    ]
    logger.debug("analyzing prompt: provider=%s model=%s length=%d", provider, req.model, len(req.prompt_text))
    try:
        model = factory(provider, logger=logger)
        result = await model.generate_analysis(
            messages,
            ChatOptions(model=req.model),
            include_alternatives=req.include_alternatives,
        )
    except Exception as e:
        logger.error("error analyzing prompt: provider=%s model=%s error=%s", provider, req.model, e)
        return JSONResponse(status_code=500, content={"message": "Error analyzing prompt", "error": str(e)})
    return result


@router.post("/generate")
async def generate_prompt(
    payload: Any = Body(default=None),
    factory: AnalysisFactory = Depends(get_analysis_factory),
):
    if not isinstance(payload, dict) or not isinstance(payload.get("answers"), dict):
        return _bad_request("Questionnaire answers are required")
    try:
        req = GenerateRequest.model_validate(payload)
    except ValidationError as e:
        return _bad_request(str(e))

    provider = req.provider or resolve_provider_for_model(req.model)
    messages = [
        Message(role="system", content=PROMPT_GENERATION_SYSTEM),
        Message(
            role="user",
            content=f"Please create a prompt based on these questionnaire answers:\n\n{format_questionnaire(req.answers)}",
        ),
    ]
    try:
        model = factory(provider, logger=logger)
        content = await model.generate_content(messages, ChatOptions(model=req.model))
    except Exception as e:
        logger.error("error generating prompt: provider=%s model=%s error=%s", provider, req.model, e)
        return JSONResponse(status_code=500, content={"message": "Error generating prompt", "error": str(e)})

    logger.info("generated prompt: provider=%s length=%d", provider, len(content))
    response = GenerateResponse(
        content=content,
        title=title_from_content(content, req.answers),
        suggested_tags=tags_from_answers(req.answers),
    )
    return response.model_dump(by_alias=True)


@router.get("/analysis-templates")
def analysis_templates() -> list:
    return ANALYSIS_TEMPLATES


@router.post("/analysis-feedback")
def analysis_feedback(payload: Any = Body(default=None)):
    try:
        feedback = AnalysisFeedback.model_validate(payload or {})
    except ValidationError as e:
        return _bad_request(str(e))
    if not feedback.analysis_id:
        return _bad_request("Analysis ID is required")
    if feedback.feedback_type not in ("helpful", "not_helpful"):
        return _bad_request("Invalid feedback type")

    logger.info(
        "analysis feedback received: analysis=%s type=%s comments=%r",
        feedback.analysis_id, feedback.feedback_type, feedback.comments,
    )
    return {
        "message": "Feedback submitted successfully",
        "analysisId": feedback.analysis_id,
        "feedbackType": feedback.feedback_type,
    }
