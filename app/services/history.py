"""Activity history business logic."""
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import (
    HISTORY_POLL_CREATED,
    HISTORY_POLL_DELETED,
    HISTORY_POLL_UPDATED,
    HISTORY_VOTE_SUBMITTED,
)
from app.core.logging_config import get_logger
from app.core.retry import with_retry
from app.core.security import MemberContext
from app.db.models import HistoryItem

logger = get_logger(__name__)

# history type -> (action, description template)
HISTORY_ACTIONS = {
    HISTORY_POLL_CREATED: ("Created poll", 'Created poll "{target}"'),
    HISTORY_POLL_UPDATED: ("Updated poll", 'Updated poll "{target}"'),
    HISTORY_POLL_DELETED: ("Deleted poll", 'Deleted poll "{target}"'),
    HISTORY_VOTE_SUBMITTED: ("Voted on poll", 'Voted on poll "{target}"'),
}


def record_history(
    db: Session,
    history_type: str,
    member: MemberContext,
    target_id: Optional[str] = None,
    target_title: Optional[str] = None,
) -> Optional[HistoryItem]:
    """Append an activity history item.

    History is secondary to the action it describes: a failure here is
    logged and rolled back, and the caller carries on.

    Returns:
        The stored HistoryItem, or None if it could not be written
    """
    target = target_title or target_id or ""
    if history_type in HISTORY_ACTIONS:
        action, template = HISTORY_ACTIONS[history_type]
        description = template.format(target=target)
    else:
        action, description = "Other action", target_title or "Performed an action"

    item = HistoryItem(
        type=history_type,
        action=action,
        description=description,
        user_id=member.user_id,
        user_name=member.name,
        user_image=member.image,
        target_id=target_id,
        target_title=target_title,
    )

    try:
        db.add(item)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "history_write_failed",
            history_type=history_type,
            target_id=target_id,
            error=str(e),
        )
        return None

    return item


def get_history(db: Session, limit: Optional[int] = None) -> List[HistoryItem]:
    """Most recent history items first, capped at limit (HISTORY_LIMIT by default)."""
    if limit is None:
        limit = settings.HISTORY_LIMIT

    def fetch() -> List[HistoryItem]:
        return (
            db.query(HistoryItem)
            .order_by(HistoryItem.created_at.desc())
            .limit(limit)
            .all()
        )

    return with_retry(fetch, on_retry=lambda exc: db.rollback())
