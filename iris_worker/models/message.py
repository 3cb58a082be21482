from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .summary import ProjectSummary

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    conversation_id: str = Field(..., alias="conversationId")
    role: Role
    content: str
    timestamp: datetime


class PostMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId", min_length=1)
    text: str = Field(..., min_length=1, description="Transcript chunk spoken or typed by the user")


class PostMessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ai_message: str = Field(..., alias="aiMessage")
    summary: ProjectSummary


class MessagesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    messages: List[Message]
    count: int


class ClearResponse(BaseModel):
    success: bool
    message: str


class SummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    summary: ProjectSummary
    exists: bool


class DeleteSummaryResponse(BaseModel):
    success: bool
    deleted: bool


class ModelStatus(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    available: bool
    model_loaded: bool
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    model: ModelStatus
