from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime


class ShortenRequest(BaseModel):
    """Request schema for creating a short link."""
    
    url: str = Field(..., description="The URL to shorten")
    custom_alias: Optional[str] = Field(
        None,
        description="Custom alias (optional, expires after 30 days)"
    )
    
    @model_validator(mode='before')
    @classmethod
    def map_legacy_fields(cls, values):
        # Older clients send the alias as `custom_code`
        if isinstance(values, dict) and 'custom_code' in values and 'custom_alias' not in values:
            values = dict(values)
            values['custom_alias'] = values.pop('custom_code')
        return values


class ShortenResponse(BaseModel):
    """Response schema for a created short link."""
    
    short_url: str
    short_code: str
    original_url: str
    custom_alias: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None


class ClickRecordResponse(BaseModel):
    timestamp: datetime
    ip: str
    user_agent: str
    short_code: str
    device_type: str


class AnalyticsResponse(BaseModel):
    """Response schema for link analytics."""
    
    short_code: str
    original_url: str
    total_clicks: int
    unique_clicks: int
    recent_clicks: List[ClickRecordResponse]
    created_at: datetime
    expires_at: Optional[datetime] = None
    is_active: bool


class ErrorResponse(BaseModel):
    """Standard error response."""
    
    error: str
    code: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str
    storage: str
    mappings: int
    version: str
