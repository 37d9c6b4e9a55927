"""Owner schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class OwnerCreate(BaseModel):
    """Schema for registering an owner."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class OwnerUpdate(BaseModel):
    """Schema for editing an owner's profile."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None


class OwnerSummary(BaseModel):
    """Owner fields embedded in booking responses."""

    id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class OwnerRead(OwnerSummary):
    """Schema for reading owner data."""

    created_at: datetime
    updated_at: datetime | None
