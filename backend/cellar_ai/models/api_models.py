"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A single chat message."""

    role: str = Field(..., description="Role of the message sender (user/assistant)")
    content: str = Field(..., description="Content of the message")
    timestamp: datetime | None = Field(default_factory=datetime.now)


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    message: str = Field(..., min_length=1, description="User's message")
    history: list[ChatMessage] = Field(
        default_factory=list, description="Previous turns of the conversation"
    )


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""

    message: str = Field(..., description="Assistant's response message")
    tool_results: list[dict[str, Any]] = Field(
        default_factory=list, description="Structured tool outputs produced during the turn"
    )


class AnalyticsQueryRequest(BaseModel):
    """Request model for the analytics endpoint."""

    query: str = Field(..., description="Natural language analytics question")


class CellarTrackerConnectRequest(BaseModel):
    """CellarTracker login. Fields are optional so missing ones produce a 400."""

    username: str | None = None
    password: str | None = None


class SummarizeRequest(BaseModel):
    """Request to summarize a tool result for display."""

    model_config = ConfigDict(populate_by_name=True)

    tool_name: str | None = Field(default=None, alias="toolName")
    result: Any = None


class SummarizeResponse(BaseModel):
    summary: str
    cached: bool = False


class GuestUserResponse(BaseModel):
    user_id: str
    email: str
