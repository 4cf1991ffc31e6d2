"""Template domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TemplateSave(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Template name is required")
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError("Template content is required")
        return v


class TemplatePreviewRequest(BaseModel):
    """Render arbitrary content against a stored booking or a sample one"""

    content: str
    bookingId: Optional[str] = None


class TemplatePreviewResponse(BaseModel):
    rendered: str


class TemplateResponse(BaseModel):
    """Schema for template response"""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    content: str
    isActive: bool = Field(validation_alias="is_active")
    createdAt: Optional[datetime] = Field(None, validation_alias="created_at")
    updatedAt: Optional[datetime] = Field(None, validation_alias="updated_at")
