import logging
from dataclasses import dataclass
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# Hard ceilings on rows requested from storage / summarized, whatever the settings say
MAX_QUERY_ROWS = 50
MAX_SUMMARY_ROWS = 10

# Defaults shared by Settings and SmartChatConfig
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_ROUTING_MAX_TOKENS = 150
DEFAULT_ROUTING_TEMPERATURE = 0.1
DEFAULT_DIRECT_ANSWER_MAX_TOKENS = 300
DEFAULT_DATA_ANSWER_MAX_TOKENS = 400
DEFAULT_ORDER_BY = "created_at"


class Settings(BaseSettings):
    # Language model
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = DEFAULT_MODEL
    OPENAI_MAX_TOKENS: int = 150
    OPENAI_TEMPERATURE: float = DEFAULT_TEMPERATURE

    # Storage
    SUPABASE_URL: str = ""
    SUPABASE_API_KEY: str = ""
    STORAGE_BACKEND: str = "rest"  # "rest" or "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./credibot.db"

    # Smart chat budgets
    ROUTING_MAX_TOKENS: int = DEFAULT_ROUTING_MAX_TOKENS
    ROUTING_TEMPERATURE: float = DEFAULT_ROUTING_TEMPERATURE
    DIRECT_ANSWER_MAX_TOKENS: int = DEFAULT_DIRECT_ANSWER_MAX_TOKENS
    DATA_ANSWER_MAX_TOKENS: int = DEFAULT_DATA_ANSWER_MAX_TOKENS
    QUERY_ROW_LIMIT: int = MAX_QUERY_ROWS
    SUMMARY_ROW_LIMIT: int = MAX_SUMMARY_ROWS
    DEFAULT_ORDER_FIELD: str = DEFAULT_ORDER_BY

    REQUEST_TIMEOUT_SECONDS: float = 30.0
    PORT: int = 3000

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()


@dataclass(frozen=True)
class SmartChatConfig:
    """Explicit configuration handed to the smart chat pipeline."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    routing_max_tokens: int = DEFAULT_ROUTING_MAX_TOKENS
    routing_temperature: float = DEFAULT_ROUTING_TEMPERATURE
    direct_answer_max_tokens: int = DEFAULT_DIRECT_ANSWER_MAX_TOKENS
    data_answer_max_tokens: int = DEFAULT_DATA_ANSWER_MAX_TOKENS
    query_row_limit: int = MAX_QUERY_ROWS
    summary_row_limit: int = MAX_SUMMARY_ROWS
    order_field: str = DEFAULT_ORDER_BY

    @classmethod
    def from_settings(cls, source: Settings) -> "SmartChatConfig":
        return cls(
            model=source.OPENAI_MODEL,
            temperature=source.OPENAI_TEMPERATURE,
            routing_max_tokens=source.ROUTING_MAX_TOKENS,
            routing_temperature=source.ROUTING_TEMPERATURE,
            direct_answer_max_tokens=source.DIRECT_ANSWER_MAX_TOKENS,
            data_answer_max_tokens=source.DATA_ANSWER_MAX_TOKENS,
            query_row_limit=min(source.QUERY_ROW_LIMIT, MAX_QUERY_ROWS),
            summary_row_limit=min(source.SUMMARY_ROW_LIMIT, MAX_SUMMARY_ROWS),
            order_field=source.DEFAULT_ORDER_FIELD,
        )


def check_settings(source: Settings) -> List[str]:
    """
    Log a warning for each missing credential.
    The service still starts; calls needing the credential fail per request.
    """
    warnings = []
    if source.STORAGE_BACKEND == "rest":
        if not source.SUPABASE_URL:
            warnings.append("SUPABASE_URL not configured")
        if not source.SUPABASE_API_KEY:
            warnings.append("SUPABASE_API_KEY not configured")
    if not source.OPENAI_API_KEY:
        warnings.append("OPENAI_API_KEY not configured")

    if warnings:
        logger.warning("Configuration warnings:")
        for warning in warnings:
            logger.warning(f"   - {warning}")
    else:
        logger.info("All configurations loaded successfully")
    return warnings
