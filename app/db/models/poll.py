"""Poll model."""
import uuid
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base


class Poll(Base):
    __tablename__ = "polls"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(16), nullable=False, default="single")  # single | multiple
    end_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(64), nullable=False)
    created_by_name = Column(String(200), nullable=False)
    created_by_image = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)
    # Incremented on every update; clients send it back to detect concurrent edits
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    options = relationship(
        "PollOption",
        back_populates="poll",
        cascade="all, delete-orphan",
        order_by="PollOption.order_index",
    )

    __table_args__ = (Index("idx_polls_created_at", "created_at"),)
