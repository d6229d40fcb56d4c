"""PollOption model."""
import uuid
from sqlalchemy import Column, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class PollOption(Base):
    __tablename__ = "poll_options"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    poll_id = Column(String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    text = Column(String(500), nullable=False)
    order_index = Column(Integer, nullable=False)

    # Relationships
    poll = relationship("Poll", back_populates="options")
    votes = relationship("PollVote", back_populates="option", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_poll_options_poll", "poll_id"),
        UniqueConstraint("poll_id", "order_index", name="uq_poll_option_order"),
    )
