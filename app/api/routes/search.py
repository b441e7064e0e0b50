from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.services import contains
from app.db.models import Board, Follower, Pin
from app.db.session import get_db
from app.schemas.user import UserSearchResult

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("/users", response_model=List[UserSearchResult])
async def search_users(
    query: str = Query(..., min_length=1, description="Part of a username"),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Usernames known to the service (pin or board owners, follow participants) containing ``query``."""
    names = union(
        select(Pin.username.label("username")),
        select(Board.username.label("username")),
        select(Follower.follower_username.label("username")),
        select(Follower.following_username.label("username")),
    ).subquery()

    result = await db.execute(
        select(names.c.username)
        .where(contains(names.c.username, query))
        .order_by(names.c.username)
        .limit(limit)
    )
    return [{"username": username} for username in result.scalars().all()]
