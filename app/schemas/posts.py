from pydantic import BaseModel, Field, field_validator
from typing import Optional

from ..models.enums import MediaType, Visibility

MAX_POST_LENGTH = 5000
MAX_COMMENT_LENGTH = 1000


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be empty")
    return value


class PostCreate(BaseModel):
    content: str = Field(max_length=MAX_POST_LENGTH)
    media_url: Optional[str] = Field(default=None, max_length=500)
    media_type: Optional[MediaType] = None
    visibility: Visibility = Visibility.PUBLIC

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value):
        return _non_blank(value)


class PostUpdate(BaseModel):
    """Partial update: only fields present in the request body are written."""
    content: Optional[str] = Field(default=None, max_length=MAX_POST_LENGTH)
    media_url: Optional[str] = Field(default=None, max_length=500)
    media_type: Optional[MediaType] = None
    visibility: Optional[Visibility] = None

    @field_validator("content", "visibility")
    @classmethod
    def not_null(cls, value):
        # media fields may be cleared with null, these may not
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value):
        return _non_blank(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, mode="json")


class CommentCreate(BaseModel):
    content: str = Field(max_length=MAX_COMMENT_LENGTH)
    parent_comment_id: Optional[int] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value):
        return _non_blank(value)
