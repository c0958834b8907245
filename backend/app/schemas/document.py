"""Document schemas."""
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator


class DocumentCreate(BaseModel):
    """Request to start tracking a document."""
    
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    document_type: str | None = None
    expiration_date: date
    renewal_period_days: int | None = Field(None, ge=1)
    is_critical: bool = False


class DocumentUpdate(BaseModel):
    """Partial update of a tracked document."""
    
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    document_type: str | None = None
    expiration_date: date | None = None
    renewal_period_days: int | None = Field(None, ge=1)
    is_critical: bool | None = None


class DocumentResponse(BaseModel):
    """Tracked document."""
    
    id: str
    title: str
    description: str | None
    document_type: str | None
    expiration_date: str  # YYYY-MM-DD
    renewal_period_days: int | None
    is_critical: bool
    status: str
    last_renewed_date: str | None
    created_at: str
    updated_at: str
    
    @field_validator("is_critical", mode="before")
    @classmethod
    def parse_flag(cls, v: Any) -> bool:
        return bool(v)
    
    class Config:
        from_attributes = True
