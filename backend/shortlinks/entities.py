"""
Domain records shared by the engine and its persistence providers.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .utils import normalize_utc


def new_mapping_id() -> str:
    return f"url_{uuid.uuid4().hex}"


class Mapping(BaseModel):
    """One short-code-to-URL binding."""
    
    id: str = Field(default_factory=new_mapping_id)
    original_url: str
    short_code: str
    custom_alias: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    click_count: int = 0
    is_active: bool = True
    
    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_utc(cls, v):
        return normalize_utc(v)
    
    @property
    def is_alias(self) -> bool:
        return self.custom_alias is not None
    
    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


class ClickEvent(BaseModel):
    """One resolution of a short code. Never mutated once recorded."""
    model_config = {"frozen": True}
    
    timestamp: datetime
    ip: str
    user_agent: str = ""
    short_code: str
    
    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v):
        return normalize_utc(v)


class StoreState(BaseModel):
    """Everything a persistence provider loads and saves."""
    
    mappings: List[Mapping] = Field(default_factory=list)
    clicks: List[ClickEvent] = Field(default_factory=list)


class AnalyticsReport(BaseModel):
    short_code: str
    original_url: str
    total_clicks: int
    unique_clicks: int
    recent_clicks: List[ClickEvent]
    created_at: datetime
    expires_at: Optional[datetime] = None
    is_active: bool = True
