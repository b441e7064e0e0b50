import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config, services
from app.core.security import current_actor, ensure_actor
from app.db.models import Comment, Pin
from app.db.session import get_db
from app.schemas.comment import CommentCreate, CommentRead
from app.schemas.pin import PinCreate, PinDeleted, PinRead, SearchResult, ViewCount
from app.schemas.social import LikeRequest, LikeState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pins", tags=["pins"])


@router.get("", response_model=List[PinRead])
async def list_pins(
    username: Optional[str] = Query(None, description="Requesting user, for liked_by_user"),
    owner: Optional[str] = Query(None, description="Only pins created by this user"),
    search: Optional[str] = Query(None, description="Substring of title, description or owner"),
    page: int = Query(1, ge=1, le=config.MAX_PAGE),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    return await services.list_pins(
        db,
        viewer=username,
        owner=owner,
        search=search,
        limit=limit,
        offset=(page - 1) * limit,
    )


@router.post("", response_model=PinRead, status_code=status.HTTP_201_CREATED)
async def create_pin(
    pin: PinCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    """Create a pin with its images in a single transaction."""
    ensure_actor(actor, pin.username)

    try:
        return await services.create_pin(
            db,
            title=pin.title,
            description=pin.description,
            images=pin.images,
            username=pin.username,
            rich_text=pin.rich_text,
        )
    except IntegrityError:
        raise HTTPException(
            status_code=400,
            detail="Invalid pin: every image must be a non-empty reference",
        )


@router.get("/search", response_model=List[SearchResult])
async def search_pins(
    q: str = Query(..., min_length=1, description="Search query"),
    username: Optional[str] = None,
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    """Pins ranked by where the query matches: title, then owner, then description."""
    return await services.search_pins(db, q, viewer=username, limit=limit)


@router.get("/created/{owner}", response_model=List[PinRead])
async def created_pins(
    owner: str,
    username: Optional[str] = None,
    page: int = Query(1, ge=1, le=config.MAX_PAGE),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    return await services.list_pins(
        db, viewer=username, owner=owner, limit=limit, offset=(page - 1) * limit
    )


@router.get("/saved/{owner}", response_model=List[PinRead])
async def saved_pins(
    owner: str,
    username: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return await services.saved_pins(db, owner, viewer=username)


@router.get("/{pin_id}", response_model=PinRead)
async def get_pin(
    pin_id: int,
    username: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    pin = await services.fetch_pin(db, pin_id, viewer=username)
    if not pin:
        raise HTTPException(status_code=404, detail="Pin not found")
    return pin


@router.delete("/{pin_id}", response_model=PinDeleted)
async def delete_pin(
    pin_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    """Delete a pin; its images, likes, saves and comments go with it."""
    result = await db.execute(select(Pin.username).where(Pin.id == pin_id))
    owner = result.scalar_one_or_none()
    if owner is None:
        raise HTTPException(status_code=404, detail="Pin not found")
    ensure_actor(actor, owner)

    if not await services.delete_pin(db, pin_id):
        raise HTTPException(status_code=404, detail="Pin not found")

    logger.info(f"Deleted pin {pin_id}")
    return {"id": pin_id}


@router.post("/{pin_id}/like", response_model=LikeState)
async def toggle_like(
    pin_id: int,
    like: LikeRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    """Like the pin, or remove the like if the user already liked it."""
    ensure_actor(actor, like.username)

    state = await services.toggle_like(db, pin_id, like.username)
    if state is None:
        raise HTTPException(status_code=404, detail="Pin not found")

    liked, likes = state
    return {"pin_id": pin_id, "liked": liked, "likes": likes}


@router.delete("/{pin_id}/like", response_model=LikeState)
async def unlike(
    pin_id: int,
    username: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    ensure_actor(actor, username)

    likes = await services.unset_like(db, pin_id, username)
    if likes is None:
        raise HTTPException(status_code=404, detail="Pin not found")
    return {"pin_id": pin_id, "liked": False, "likes": likes}


@router.post("/{pin_id}/view", response_model=ViewCount)
async def record_view(
    pin_id: int,
    db: AsyncSession = Depends(get_db),
):
    views = await services.record_view(db, pin_id)
    if views is None:
        raise HTTPException(status_code=404, detail="Pin not found")
    return {"pin_id": pin_id, "views": views}


@router.get("/{pin_id}/comments", response_model=List[CommentRead])
async def list_comments(
    pin_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Comments on a pin, newest first."""
    if not await db.get(Pin, pin_id):
        raise HTTPException(status_code=404, detail="Pin not found")

    result = await db.execute(
        select(Comment)
        .where(Comment.pin_id == pin_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return result.scalars().all()


@router.post("/{pin_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def add_comment(
    pin_id: int,
    comment: CommentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    ensure_actor(actor, comment.username)

    pin = await db.get(Pin, pin_id)
    if not pin:
        raise HTTPException(status_code=404, detail="Pin not found")

    db_comment = Comment(pin_id=pin_id, username=comment.username, content=comment.content)
    db.add(db_comment)
    await db.commit()
    await db.refresh(db_comment)

    return db_comment
