from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    JSON,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base


class Pin(Base):
    __tablename__ = "pins"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    rich_text = Column(JSON, nullable=True)  # editor document, stored as-is
    image_url = Column(Text, nullable=False)  # primary image
    username = Column(String(255), nullable=False, index=True)
    views = Column(Integer, nullable=False, server_default="0")
    likes = Column(Integer, nullable=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    images = relationship(
        "PinImage",
        back_populates="pin",
        order_by="PinImage.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("length(title) > 0", name="ck_pins_title"),
        CheckConstraint("length(image_url) > 0", name="ck_pins_image_url"),
    )
