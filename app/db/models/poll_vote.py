"""PollVote model."""
import uuid
from datetime import datetime, timezone as tz
from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class PollVote(Base):
    __tablename__ = "poll_votes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    poll_id = Column(String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    option_id = Column(String(36), ForeignKey("poll_options.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    option = relationship("PollOption", back_populates="votes")

    __table_args__ = (
        Index("idx_poll_votes_poll_user", "poll_id", "user_id"),
        Index("idx_poll_votes_option", "option_id"),
        UniqueConstraint("option_id", "user_id", name="uq_option_user"),
    )
