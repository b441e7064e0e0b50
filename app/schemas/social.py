from pydantic import BaseModel, Field


class LikeRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)


class LikeState(BaseModel):
    pin_id: int
    liked: bool
    likes: int


class FollowRequest(BaseModel):
    follower_username: str = Field(..., min_length=1, max_length=255)
    following_username: str = Field(..., min_length=1, max_length=255)


class FollowState(BaseModel):
    follower_username: str
    following_username: str
    following: bool
