"""
Request/response models for the provenance ledger API.
"""

from pydantic import BaseModel, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


class EntityCreateRequest(BaseModel):
    id: str
    nom: str
    description: str

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('id cannot be empty')
        return v


class AgentCreateRequest(BaseModel):
    id: str
    nom: str
    role: str

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('id cannot be empty')
        return v


class ActivityCreateRequest(BaseModel):
    id: str
    description: str
    timestamp: str

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('id cannot be empty')
        return v


class LinkRequest(BaseModel):
    entity_id: str
    agent_id: str

    @field_validator('entity_id', 'agent_id')
    @classmethod
    def reference_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('reference cannot be empty')
        return v


class EntityUpdateRequest(BaseModel):
    # Empty or missing fields keep the stored value
    nom: Optional[str] = None
    description: Optional[str] = None


class InvokeRequest(BaseModel):
    args: List[str] = []


class ExistsResponse(BaseModel):
    id: str
    exists: bool


class HistoryItem(BaseModel):
    timestamp: str
    data: Dict[str, Any]


class VerifyResponse(BaseModel):
    id: str
    versions: int
    valid: bool
    broken_at: Optional[int] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    store_provider: str
    store_health: bool
    record_count: int


class ErrorResponse(BaseModel):
    error_type: str
    message: str
    record_id: Optional[str] = None
    timestamp: datetime = None

    def __init__(self, **data):
        super().__init__(timestamp=datetime.now(), **data)
