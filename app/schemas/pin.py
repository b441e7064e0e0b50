from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator


class PinCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    images: List[str] = Field(..., min_length=1, description="First image is the primary one")
    username: str = Field(..., min_length=1, max_length=255)
    rich_text: Optional[Any] = Field(None, alias="richText")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("images")
    @classmethod
    def strip_images(cls, value: List[str]) -> List[str]:
        # Blank references become empty and are refused by the images CHECK
        return [url.strip() for url in value]

    class Config:
        populate_by_name = True


class PinRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    rich_text: Optional[Any] = None
    image_url: str
    images: List[str] = []
    username: str
    views: int
    likes: int
    comment_count: int = 0
    liked_by_user: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SearchResult(PinRead):
    score: int


class PinDeleted(BaseModel):
    id: int


class ViewCount(BaseModel):
    pin_id: int
    views: int
