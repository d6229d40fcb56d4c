"""HistoryItem model."""
import uuid
from datetime import datetime, timezone as tz
from sqlalchemy import Column, DateTime, Index, String

from app.db.base import Base


class HistoryItem(Base):
    __tablename__ = "activity_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(String(50), nullable=False)
    action = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    user_id = Column(String(64), nullable=True)
    user_name = Column(String(200), nullable=False)
    user_image = Column(String(500), nullable=True)
    target_id = Column(String(36), nullable=True)
    target_title = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    __table_args__ = (Index("idx_activity_history_created_at", "created_at"),)
