from sqlalchemy import (
    Column,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base


class PinImage(Base):
    """Secondary image of a pin. The primary image lives on the pin row."""

    __tablename__ = "pin_images"

    id = Column(Integer, primary_key=True, index=True)
    pin_id = Column(Integer, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    pin = relationship("Pin", back_populates="images")

    __table_args__ = (
        UniqueConstraint("pin_id", "position", name="uq_pin_image_position"),
        CheckConstraint("length(image_url) > 0", name="ck_pin_images_image_url"),
    )
