"""User Schemas — sign-up input and public user projection."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from switchyard.core.validation import StrictInput


class UserCreate(StrictInput):
    """Sign-up input — email is lower-cased and stripped, name stripped."""
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str = Field(min_length=1, max_length=100)

    # Before-mode: runs ahead of the pattern and length constraints
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    post_count: int
    created_at: datetime


class UserCreated(BaseModel):
    user: UserResponse
    token: str
