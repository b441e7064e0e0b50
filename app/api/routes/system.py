from fastapi import APIRouter, Depends, Request
from fastapi.openapi.utils import get_openapi
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Board, Comment, Follower, Like, Pin, PinImage, SavedPin
from app.db.session import get_db
from app.schemas.system import SystemStats

router = APIRouter(prefix="/api/system", tags=["system"])

# Response field -> table it counts
COUNTED = {
    "pins": Pin,
    "pin_images": PinImage,
    "boards": Board,
    "saved_pins": SavedPin,
    "likes": Like,
    "comments": Comment,
    "follows": Follower,
}


@router.get("/stats", response_model=SystemStats)
async def get_stats(db: AsyncSession = Depends(get_db)):
    """Row counts for every table, read in a single round trip."""
    stmt = select(*(
        select(func.count()).select_from(model).scalar_subquery().label(field)
        for field, model in COUNTED.items()
    ))
    row = (await db.execute(stmt)).mappings().one()
    return SystemStats(**row)


@router.get("/docs.json", include_in_schema=False)
async def get_openapi_json(request: Request):
    app = request.app
    return get_openapi(
        title=app.title,
        version=app.version,
        description="Pins, boards, likes, follows and comments.",
        routes=app.routes,
    )
