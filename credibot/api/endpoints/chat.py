from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from credibot.ai_feature.service import CompletionError, CompletionService
from credibot.api.deps import get_completion_service, get_smart_chat_pipeline
from credibot.core import schemas
from credibot.core.config import settings
from credibot.core.smart_chat.errors import InvalidInputError, SmartChatError
from credibot.core.smart_chat.pipeline import SmartChatPipeline

router = APIRouter(prefix="/api/v1", tags=["Chat"])

completions_dep = Annotated[CompletionService, Depends(get_completion_service)]
pipeline_dep = Annotated[SmartChatPipeline, Depends(get_smart_chat_pipeline)]


@router.post("/chat", response_model=schemas.SuccessResponse)
async def chat(payload: schemas.ChatRequest, completions: completions_dep):
    """Forward the message to the language model as-is."""
    if not payload.message.strip():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Message is required")

    try:
        completion = await completions.complete(
            payload.message,
            model=payload.model or settings.OPENAI_MODEL,
            max_tokens=payload.max_tokens or settings.OPENAI_MAX_TOKENS,
            temperature=settings.OPENAI_TEMPERATURE,
        )
    except CompletionError as e:
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to get response from OpenAI: {e}",
        )

    response = schemas.ChatResponse(
        message=completion.text,
        model=completion.model,
        usage=completion.usage,
        created_at=datetime.now(),
    )
    return schemas.SuccessResponse(
        data=response, message="Chat response generated successfully"
    )


@router.post("/smart-chat", response_model=schemas.SuccessResponse)
async def smart_chat(payload: schemas.ChatRequest, pipeline: pipeline_dep):
    """
    Answer the message, consulting the database when the model asks for it.
    The executed query is echoed back in sql_query.
    """
    try:
        result = await pipeline.answer(
            payload.message, model=payload.model, max_tokens=payload.max_tokens
        )
    except InvalidInputError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, e.message)
    except SmartChatError as e:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    response = schemas.SmartChatResponse(
        message=result.answer,
        used_database=result.used_data,
        sql_query=result.executed_query,
        created_at=datetime.now(),
    )
    return schemas.SuccessResponse(
        data=response, message="Smart chat response generated successfully"
    )
