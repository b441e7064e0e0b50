from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
    func,
)
from app.db.base import Base


class Follower(Base):
    __tablename__ = "followers"

    id = Column(Integer, primary_key=True, index=True)
    follower_username = Column(String(255), nullable=False, index=True)
    following_username = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("follower_username", "following_username", name="uq_follow_pair"),
        CheckConstraint("follower_username <> following_username", name="ck_no_self_follow"),
    )
