"""User schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    display_name: str = Field(..., min_length=1, max_length=255)


class UserRead(BaseModel):
    id: UUID
    email: str
    display_name: str

    model_config = {"from_attributes": True}
