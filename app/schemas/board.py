from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.schemas.pin import PinRead


class BoardCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_private: bool = False


class BoardRead(BaseModel):
    id: int
    username: str
    title: str
    description: Optional[str] = None
    is_private: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BoardPreview(BoardRead):
    pin_count: int = 0
    cover_image: Optional[str] = None


class BoardDetail(BoardRead):
    pins: List[PinRead]


class SavePinRequest(BaseModel):
    pin_id: int


class SavedPinRead(BaseModel):
    board_id: int
    pin_id: int
    saved_at: Optional[datetime] = None

    class Config:
        from_attributes = True
