from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.user import UserStats

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{username}/stats", response_model=UserStats)
async def get_user_stats(username: str, db: AsyncSession = Depends(get_db)):
    """Profile counters. Unknown users get all zeros."""
    sql = text("""
        SELECT
            (SELECT COUNT(*) FROM pins WHERE username = :username) AS pins,
            (SELECT COALESCE(SUM(views), 0) FROM pins WHERE username = :username) AS views,
            (SELECT COALESCE(SUM(likes), 0) FROM pins WHERE username = :username) AS likes,
            (SELECT COUNT(*) FROM followers WHERE following_username = :username) AS followers,
            (SELECT COUNT(*) FROM followers WHERE follower_username = :username) AS following,
            (SELECT COUNT(*) FROM boards WHERE username = :username) AS boards
    """)
    result = await db.execute(sql, {"username": username})
    return dict(result.mappings().one())
