from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config, services
from app.db.session import get_db
from app.schemas.pin import PinRead

router = APIRouter(prefix="/api/feed", tags=["feed"])


@router.get("", response_model=List[PinRead])
async def get_feed(
    username: str = Query(..., min_length=1),
    page: int = Query(1, ge=1, le=config.MAX_PAGE),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    """Pins from the users ``username`` follows, plus their own, newest first."""
    return await services.feed(db, username, limit=limit, offset=(page - 1) * limit)
