from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.db.base import Base


class SavedPin(Base):
    __tablename__ = "saved_pins"

    id = Column(Integer, primary_key=True, index=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    pin_id = Column(Integer, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True)
    saved_at = Column(DateTime(timezone=True), server_default=func.now())

    board = relationship("Board", back_populates="saved_pins")

    __table_args__ = (
        UniqueConstraint("board_id", "pin_id", name="uq_saved_board_pin"),
    )
