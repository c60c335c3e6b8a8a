"""Chef post Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.validators import sanitize_text


class PostCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    images: list[str] = Field(default_factory=list, max_length=10)
    location: str | None = Field(None, max_length=200)
    tags: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("content")
    @classmethod
    def sanitize_content(cls, v: str) -> str:
        return sanitize_text(v) or v


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chef_id: UUID
    content: str
    images: list[str]
    location: str | None
    tags: list[str]
    created_at: datetime


class PostListResponse(BaseModel):
    posts: list[PostResponse]
    total: int
    page: int
    page_size: int
