"""Post Schemas — create/update/lookup inputs, paginated listing, response projection.

Invariants:
    - PostUpdate requires at least one of title/body (else BAD_REQUEST in the handler)
    - Titles are stripped before length checks on create and update alike
    - PostListInput.order_by is limited to PostOrderField
    - PostListInput.filters accepts only author_id and search
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from switchyard.core.pagination import PaginationRequest
from switchyard.core.validation import StrictInput


def _strip(v: Any) -> Any:
    """Whitespace-only titles become "" and fail min_length."""
    return v.strip() if isinstance(v, str) else v


class PostOrderField(str, Enum):
    UPDATED_AT = "updated_at"
    CREATED_AT = "created_at"
    TITLE = "title"


class PostFilters(StrictInput):
    author_id: UUID | None = None
    search: str | None = Field(None, min_length=1, max_length=200)


class PostCreate(StrictInput):
    title: str = Field(min_length=1, max_length=200)
    body: str = Field("", max_length=20_000)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return _strip(v)


class PostUpdate(StrictInput):
    id: UUID
    title: str | None = Field(None, min_length=1, max_length=200)
    body: str | None = Field(None, max_length=20_000)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return _strip(v)


class PostLookup(StrictInput):
    id: UUID


class PostListInput(PaginationRequest):
    order_by: PostOrderField = PostOrderField.UPDATED_AT
    filters: PostFilters | None = None


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    title: str
    body: str
    created_at: datetime
    updated_at: datetime
