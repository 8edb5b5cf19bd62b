from __future__ import annotations
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    # Loosely typed so that non-string values reach the validator and get a 400
    message: Optional[Any] = Field(None, description="User message")


class ChatResponse(BaseModel):
    reply: str


class ChatErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    error_details: Optional[Dict[str, Any]] = Field(None, alias="errorDetails")


class DebugStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    status: str = "running"
    environment: str
    port: int
    has_api_key: bool = Field(..., alias="hasApiKey")
    model: str
    fallback_models: List[str] = Field(default_factory=list, alias="fallbackModels")
    intents_enabled: bool = Field(..., alias="intentsEnabled")
    credentials: Optional[Dict[str, Any]] = None
