import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, false, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import services
from app.core.security import current_actor, ensure_actor
from app.db.session import get_db
from app.db.models import Board, Pin, SavedPin
from app.schemas.board import (
    BoardCreate,
    BoardDetail,
    BoardPreview,
    BoardRead,
    SavedPinRead,
    SavePinRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boards", tags=["boards"])


async def get_board_or_404(db: AsyncSession, board_id: int) -> Board:
    result = await db.execute(select(Board).where(Board.id == board_id))
    board = result.scalar_one_or_none()
    if not board:
        raise HTTPException(status_code=404, detail="Board not found")
    return board


@router.post("", response_model=BoardRead, status_code=status.HTTP_201_CREATED)
async def create_board(
    board: BoardCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    ensure_actor(actor, board.username)

    title = board.title.strip()
    if not title:
        raise HTTPException(status_code=422, detail="Title is required")

    db_board = Board(
        username=board.username,
        title=title,
        description=board.description,
        is_private=board.is_private,
    )
    db.add(db_board)
    await db.commit()
    await db.refresh(db_board)

    logger.info(f"Created board {db_board.id} for {board.username}")
    return db_board


@router.get("/{username}", response_model=List[BoardPreview])
async def list_boards(
    username: str,
    viewer: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Boards owned by a user, newest first. Private boards are shown to their owner only."""
    pin_count = (
        select(func.count(SavedPin.id))
        .where(SavedPin.board_id == Board.id)
        .correlate(Board)
        .scalar_subquery()
    )
    cover_image = (
        select(Pin.image_url)
        .join(SavedPin, SavedPin.pin_id == Pin.id)
        .where(SavedPin.board_id == Board.id)
        .order_by(SavedPin.saved_at.desc(), SavedPin.id.desc())
        .limit(1)
        .correlate(Board)
        .scalar_subquery()
    )

    stmt = select(Board, pin_count.label("pin_count"), cover_image.label("cover_image")).where(
        Board.username == username
    )
    if viewer != username:
        stmt = stmt.where(Board.is_private == false())

    result = await db.execute(stmt.order_by(Board.created_at.desc(), Board.id.desc()))

    return [
        {
            "id": board.id,
            "username": board.username,
            "title": board.title,
            "description": board.description,
            "is_private": board.is_private,
            "created_at": board.created_at,
            "pin_count": count,
            "cover_image": cover,
        }
        for board, count, cover in result.all()
    ]


@router.get("/{board_id}/pins", response_model=BoardDetail)
async def get_board_pins(
    board_id: int,
    viewer: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Fetch a board with the pins saved on it, most recently saved first."""
    board = await get_board_or_404(db, board_id)
    if board.is_private and viewer != board.username:
        raise HTTPException(status_code=404, detail="Board not found")

    pins = await services.board_pins(db, board_id, viewer=viewer)

    return {
        "id": board.id,
        "username": board.username,
        "title": board.title,
        "description": board.description,
        "is_private": board.is_private,
        "created_at": board.created_at,
        "pins": pins,
    }


@router.post("/{board_id}/pins", response_model=SavedPinRead, status_code=status.HTTP_201_CREATED)
async def save_pin(
    board_id: int,
    data: SavePinRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    board = await get_board_or_404(db, board_id)
    ensure_actor(actor, board.username)

    pin = await db.get(Pin, data.pin_id)
    if not pin:
        raise HTTPException(status_code=404, detail="Pin not found")

    result = await db.execute(
        services.insert_ignoring_conflicts(db, SavedPin)
        .values(board_id=board_id, pin_id=data.pin_id)
        .on_conflict_do_nothing()
        .returning(SavedPin.board_id, SavedPin.pin_id, SavedPin.saved_at)
    )
    saved = result.mappings().first()
    await db.commit()

    if saved is None:
        raise HTTPException(status_code=409, detail="Pin already saved to this board")

    logger.info(f"Saved pin {data.pin_id} to board {board_id}")
    return dict(saved)


@router.delete("/{board_id}")
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    """Delete a board; the pins stay, their saves on this board go."""
    board = await get_board_or_404(db, board_id)
    ensure_actor(actor, board.username)

    await db.execute(
        delete(Board).where(Board.id == board_id).execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info(f"Deleted board {board_id}")
    return {"id": board_id}


@router.delete("/{board_id}/pins/{pin_id}")
async def remove_pin(
    board_id: int,
    pin_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(current_actor),
):
    board = await get_board_or_404(db, board_id)
    ensure_actor(actor, board.username)

    result = await db.execute(
        delete(SavedPin)
        .where(SavedPin.board_id == board_id, SavedPin.pin_id == pin_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    if not result.rowcount:
        raise HTTPException(status_code=404, detail="Pin is not saved to this board")

    return {"board_id": board_id, "pin_id": pin_id}
