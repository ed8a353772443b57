from typing import Annotated

from fastapi import Depends

from credibot.ai_feature.service import CompletionService
from credibot.core.config import SmartChatConfig, settings
from credibot.core.database import AsyncSessionLocal
from credibot.core.storage import RestTableReader, SqlTableReader, TableReader
from credibot.core.smart_chat.pipeline import SmartChatPipeline


# New collaborators per request: nothing is shared between questions
def get_completion_service() -> CompletionService:
    return CompletionService(
        api_key=settings.OPENAI_API_KEY,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )


def get_table_reader() -> TableReader:
    if settings.STORAGE_BACKEND == "sql":
        return SqlTableReader(AsyncSessionLocal)
    return RestTableReader(
        base_url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_API_KEY,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )


def get_smart_chat_pipeline(
    completions: Annotated[CompletionService, Depends(get_completion_service)],
    reader: Annotated[TableReader, Depends(get_table_reader)],
) -> SmartChatPipeline:
    return SmartChatPipeline(completions, reader, SmartChatConfig.from_settings(settings))
