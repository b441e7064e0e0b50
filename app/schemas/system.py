from pydantic import BaseModel


class SystemStats(BaseModel):
    """Row counts per table."""
    pins: int
    pin_images: int
    boards: int
    saved_pins: int
    likes: int
    comments: int
    follows: int
