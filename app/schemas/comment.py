from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class CommentCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("content must not be blank")
        return value


class CommentRead(BaseModel):
    id: int
    pin_id: int
    username: str
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
