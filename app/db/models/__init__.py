from app.db.models.pin import Pin
from app.db.models.pin_image import PinImage
from app.db.models.like import Like
from app.db.models.follower import Follower
from app.db.models.board import Board
from app.db.models.saved_pin import SavedPin
from app.db.models.comment import Comment

__all__ = ["Pin", "PinImage", "Like", "Follower", "Board", "SavedPin", "Comment"]
