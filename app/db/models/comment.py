from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    func,
)
from app.db.base import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    # Cascades with the pin so no comment outlives it
    pin_id = Column(Integer, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True)
    username = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("length(content) > 0", name="ck_comments_content"),
    )
