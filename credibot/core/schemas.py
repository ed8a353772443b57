from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# =========================
# Records
# =========================
# A record value as it crosses the storage boundary (JSON-style interchange)
JSONValue = Union[str, int, float, bool, None, Dict[str, "JSONValue"], List["JSONValue"]]
Record = Dict[str, JSONValue]


# =========================
# CHAT
# =========================
class ChatRequest(BaseModel):
    message: str = ""
    model: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, gt=0)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    message: str
    model: str
    usage: Usage
    created_at: datetime


# =========================
# SMART CHAT
# =========================
class SmartChatResponse(BaseModel):
    message: str
    used_database: bool
    sql_query: Optional[str] = None
    created_at: datetime


# =========================
# ENVELOPE
# =========================
class SuccessResponse(BaseModel):
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
