import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import (
    case,
    delete,
    exists,
    false,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Board, Comment, Follower, Like, Pin, PinImage, SavedPin

logger = logging.getLogger(__name__)

# Search weights: title matches rank above username matches, which rank above description
TITLE_WEIGHT = 3
USERNAME_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


# --- Statement helpers --- #


def insert_ignoring_conflicts(db: AsyncSession, model):
    """INSERT ... ON CONFLICT DO NOTHING for the session's dialect."""
    dialect = db.get_bind().dialect.name
    insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
    return insert(model)


def like_pattern(term: str) -> str:
    """Substring LIKE pattern with the wildcards in ``term`` escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def contains(column, term: str):
    """Case-insensitive substring match, folded by the database on both sides."""
    return func.lower(column).like(func.lower(like_pattern(term)), escape="\\")


def pin_select(viewer: Optional[str] = None):
    """Pins with their comment count and whether ``viewer`` liked them."""
    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.pin_id == Pin.id)
        .correlate(Pin)
        .scalar_subquery()
    )
    if viewer:
        liked = exists().where(Like.pin_id == Pin.id, Like.username == viewer)
    else:
        liked = false()

    return select(
        Pin,
        comment_count.label("comment_count"),
        liked.label("liked_by_user"),
    ).execution_options(populate_existing=True)


def newest_first(stmt):
    return stmt.order_by(Pin.created_at.desc(), Pin.id.desc())


async def secondary_images(db: AsyncSession, pin_ids: Sequence[int]) -> Dict[int, List[str]]:
    if not pin_ids:
        return {}
    result = await db.execute(
        select(PinImage.pin_id, PinImage.image_url)
        .where(PinImage.pin_id.in_(pin_ids))
        .order_by(PinImage.pin_id, PinImage.position)
    )
    images: Dict[int, List[str]] = {pin_id: [] for pin_id in pin_ids}
    for pin_id, image_url in result.all():
        images[pin_id].append(image_url)
    return images


async def load_pins(db: AsyncSession, stmt) -> List[Dict[str, Any]]:
    """Run a ``pin_select`` statement and attach each pin's secondary images."""
    rows = (await db.execute(stmt)).all()
    images = await secondary_images(db, [row[0].id for row in rows])

    pins = []
    for row in rows:
        pin = row[0]
        data = {
            "id": pin.id,
            "title": pin.title,
            "description": pin.description,
            "rich_text": pin.rich_text,
            "image_url": pin.image_url,
            "images": images.get(pin.id, []),
            "username": pin.username,
            "views": pin.views,
            "likes": pin.likes,
            "comment_count": row.comment_count,
            "liked_by_user": bool(row.liked_by_user),
            "created_at": pin.created_at,
        }
        if "score" in row._fields:
            data["score"] = row.score
        pins.append(data)
    return pins


# --- Pins --- #


async def fetch_pin(db: AsyncSession, pin_id: int, viewer: Optional[str] = None) -> Optional[Dict[str, Any]]:
    pins = await load_pins(db, pin_select(viewer).where(Pin.id == pin_id))
    return pins[0] if pins else None


async def list_pins(
    db: AsyncSession,
    viewer: Optional[str] = None,
    owner: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    stmt = pin_select(viewer)
    if owner:
        stmt = stmt.where(Pin.username == owner)
    if search:
        stmt = stmt.where(
            or_(
                contains(Pin.title, search),
                contains(Pin.description, search),
                contains(Pin.username, search),
            )
        )
    return await load_pins(db, newest_first(stmt).limit(limit).offset(offset))


async def create_pin(
    db: AsyncSession,
    title: str,
    description: Optional[str],
    images: Sequence[str],
    username: str,
    rich_text: Any = None,
) -> Dict[str, Any]:
    """
    Persist a pin and its secondary images as one unit.

    The first image becomes the pin's primary image; the rest are stored as
    ``pin_images`` rows in the order given. Any failure rolls back every
    row written so far and re-raises.
    """
    if not images:
        raise ValueError("a pin needs at least one image")

    primary, secondary = images[0], list(images[1:])
    try:
        pin = Pin(
            title=title,
            description=description,
            rich_text=rich_text,
            image_url=primary,
            username=username,
        )
        db.add(pin)
        await db.flush()  # assigns pin.id

        db.add_all(
            [
                PinImage(pin_id=pin.id, image_url=url, position=position)
                for position, url in enumerate(secondary)
            ]
        )
        await db.flush()
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create pin for {username}, rolled back: {e}")
        raise

    logger.info(f"Created pin {pin.id} for {username} with {len(secondary)} extra image(s)")
    return await fetch_pin(db, pin.id, viewer=username)


async def delete_pin(db: AsyncSession, pin_id: int) -> bool:
    result = await db.execute(
        delete(Pin).where(Pin.id == pin_id).execution_options(synchronize_session=False)
    )
    await db.commit()
    return bool(result.rowcount)


async def record_view(db: AsyncSession, pin_id: int) -> Optional[int]:
    result = await db.execute(
        update(Pin)
        .where(Pin.id == pin_id)
        .values(views=Pin.views + 1)
        .returning(Pin.views)
        .execution_options(synchronize_session=False)
    )
    views = result.scalar_one_or_none()
    await db.commit()
    return views


# --- Likes --- #


async def _pin_exists(db: AsyncSession, pin_id: int) -> bool:
    result = await db.execute(select(Pin.id).where(Pin.id == pin_id))
    return result.scalar_one_or_none() is not None


async def _adjust_like_count(db: AsyncSession, pin_id: int, delta: int) -> None:
    await db.execute(
        update(Pin)
        .where(Pin.id == pin_id)
        .values(likes=Pin.likes + delta)
        .execution_options(synchronize_session=False)
    )


async def _remove_like(db: AsyncSession, pin_id: int, username: str) -> bool:
    result = await db.execute(
        delete(Like)
        .where(Like.pin_id == pin_id, Like.username == username)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        await _adjust_like_count(db, pin_id, -1)
        return True
    return False


async def _add_like(db: AsyncSession, pin_id: int, username: str) -> None:
    result = await db.execute(
        insert_ignoring_conflicts(db, Like)
        .values(pin_id=pin_id, username=username)
        .on_conflict_do_nothing()
        .returning(Like.id)
    )
    # No row back means a concurrent request already liked it
    if result.scalar_one_or_none() is not None:
        await _adjust_like_count(db, pin_id, 1)


async def _like_count(db: AsyncSession, pin_id: int) -> int:
    result = await db.execute(select(Pin.likes).where(Pin.id == pin_id))
    return result.scalar_one()


async def toggle_like(db: AsyncSession, pin_id: int, username: str) -> Optional[Tuple[bool, int]]:
    """
    Flip the like of ``username`` on a pin.

    Returns ``(liked, likes)`` after the flip, or None when the pin does
    not exist.
    """
    try:
        if not await _pin_exists(db, pin_id):
            return None
        if await _remove_like(db, pin_id, username):
            liked = False
        else:
            await _add_like(db, pin_id, username)
            liked = True
        likes = await _like_count(db, pin_id)
        await db.commit()
    except IntegrityError:
        # The pin was deleted after the existence check
        await db.rollback()
        logger.info(f"Pin {pin_id} disappeared while {username} toggled a like")
        return None
    except Exception:
        await db.rollback()
        raise

    logger.info(f"{username} {'liked' if liked else 'unliked'} pin {pin_id}")
    return liked, likes


async def unset_like(db: AsyncSession, pin_id: int, username: str) -> Optional[int]:
    """Remove a like if present. Returns the pin's like count, None if no such pin."""
    try:
        if not await _pin_exists(db, pin_id):
            return None
        await _remove_like(db, pin_id, username)
        likes = await _like_count(db, pin_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return likes


# --- Follows --- #


async def is_following(db: AsyncSession, follower: str, following: str) -> bool:
    result = await db.execute(
        select(Follower.id).where(
            Follower.follower_username == follower,
            Follower.following_username == following,
        )
    )
    return result.scalar_one_or_none() is not None


async def _remove_follow(db: AsyncSession, follower: str, following: str) -> bool:
    result = await db.execute(
        delete(Follower)
        .where(
            Follower.follower_username == follower,
            Follower.following_username == following,
        )
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


async def _add_follow(db: AsyncSession, follower: str, following: str) -> None:
    # A concurrent identical follow is absorbed by the unique pair
    await db.execute(
        insert_ignoring_conflicts(db, Follower)
        .values(follower_username=follower, following_username=following)
        .on_conflict_do_nothing()
    )


async def toggle_follow(db: AsyncSession, follower: str, following: str) -> bool:
    """Flip the follow relation; returns True when ``follower`` now follows."""
    try:
        if await _remove_follow(db, follower, following):
            now_following = False
        else:
            await _add_follow(db, follower, following)
            now_following = True
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"{follower} {'followed' if now_following else 'unfollowed'} {following}")
    return now_following


# --- Feed and search --- #


async def feed(db: AsyncSession, username: str, limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
    """The user's own pins plus pins of everyone they follow, newest first."""
    followed = select(Follower.following_username).where(Follower.follower_username == username)
    stmt = pin_select(username).where(
        or_(Pin.username == username, Pin.username.in_(followed))
    )
    return await load_pins(db, newest_first(stmt).limit(limit).offset(offset))


async def search_pins(db: AsyncSession, query: str, viewer: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
    score = (
        case((contains(Pin.title, query), TITLE_WEIGHT), else_=0)
        + case((contains(Pin.username, query), USERNAME_WEIGHT), else_=0)
        + case((contains(func.coalesce(Pin.description, ""), query), DESCRIPTION_WEIGHT), else_=0)
    )
    stmt = (
        pin_select(viewer)
        .add_columns(score.label("score"))
        .where(score > 0)
        .order_by(score.desc(), Pin.created_at.desc(), Pin.id.desc())
        .limit(limit)
    )
    return await load_pins(db, stmt)


# --- Boards --- #


async def board_pins(db: AsyncSession, board_id: int, viewer: Optional[str] = None) -> List[Dict[str, Any]]:
    stmt = (
        pin_select(viewer)
        .join(SavedPin, SavedPin.pin_id == Pin.id)
        .where(SavedPin.board_id == board_id)
        .order_by(SavedPin.saved_at.desc(), SavedPin.id.desc())
    )
    return await load_pins(db, stmt)


async def saved_pins(db: AsyncSession, username: str, viewer: Optional[str] = None) -> List[Dict[str, Any]]:
    """Distinct pins saved on any of the user's boards, most recently saved first."""
    latest = (
        select(
            SavedPin.pin_id,
            func.max(SavedPin.saved_at).label("saved_at"),
            func.max(SavedPin.id).label("last_id"),
        )
        .join(Board, Board.id == SavedPin.board_id)
        .where(Board.username == username)
    )
    if viewer != username:
        latest = latest.where(Board.is_private == false())
    latest = latest.group_by(SavedPin.pin_id).subquery()

    stmt = (
        pin_select(viewer)
        .join(latest, latest.c.pin_id == Pin.id)
        .order_by(latest.c.saved_at.desc(), latest.c.last_id.desc())
    )
    return await load_pins(db, stmt)
