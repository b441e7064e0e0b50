from pydantic import BaseModel


class UserStats(BaseModel):
    pins: int
    views: int
    likes: int
    followers: int
    following: int
    boards: int


class UserSearchResult(BaseModel):
    username: str
