from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import services
from app.core.security import current_actor, ensure_actor
from app.db.session import get_db
from app.schemas.social import FollowRequest, FollowState

router = APIRouter(prefix="/api/follow", tags=["follows"])


@router.post("", response_model=FollowState)
async def toggle_follow(
    data: FollowRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    """Follow a user, or unfollow if already following."""
    ensure_actor(actor, data.follower_username)

    if data.follower_username == data.following_username:
        raise HTTPException(status_code=400, detail="You cannot follow yourself")

    following = await services.toggle_follow(
        db, data.follower_username, data.following_username
    )
    return {
        "follower_username": data.follower_username,
        "following_username": data.following_username,
        "following": following,
    }


@router.get("/status", response_model=FollowState)
async def follow_status(
    follower_username: str = Query(..., min_length=1),
    following_username: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    return {
        "follower_username": follower_username,
        "following_username": following_username,
        "following": await services.is_following(db, follower_username, following_username),
    }
