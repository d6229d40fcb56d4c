"""Vote business logic."""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import POLL_TYPE_SINGLE
from app.core.errors import PollClosedError, PollNotFoundError, PollValidationError
from app.core.logging_config import get_logger
from app.db.models import Poll, PollOption, PollVote
from app.services.poll import invalidate_polls_cache
from app.services.tally import is_poll_open

logger = get_logger(__name__)


def submit_votes(
    db: Session,
    poll_id: str,
    option_ids: List[str],
    user_id: str,
    now: Optional[datetime] = None,
) -> List[str]:
    """Replace a member's ballot in a poll.

    The member's previous votes in the poll are deleted and one vote row is
    inserted per selected option, in one transaction. Submitting the same
    ballot twice leaves the same rows; an empty ballot retracts the vote.

    For single-choice polls only the first selected option is kept.

    Args:
        db: SQLAlchemy session
        poll_id: ID of the poll
        option_ids: Selected option IDs, in selection order
        user_id: The voting member
        now: Reference time for the end-date check (defaults to now)

    Returns:
        List[str]: the option IDs recorded for the member

    Raises:
        PollNotFoundError if the poll does not exist,
        PollClosedError if the poll is inactive or past its end date,
        PollValidationError if an option does not belong to the poll
    """
    try:
        # Lock the poll row so concurrent ballots from the same member serialize
        poll = db.query(Poll).filter(Poll.id == poll_id).with_for_update().first()
        if not poll:
            raise PollNotFoundError()

        if settings.POLL_ENFORCE_END_DATE and not is_poll_open(poll, now):
            raise PollClosedError()

        # Collapse duplicates, keeping first-selection order
        selected = list(dict.fromkeys(option_ids))

        if poll.type == POLL_TYPE_SINGLE and len(selected) > 1:
            selected = selected[:1]

        if selected:
            valid_ids = {
                option_id
                for (option_id,) in db.query(PollOption.id).filter(PollOption.poll_id == poll_id)
            }
            if any(option_id not in valid_ids for option_id in selected):
                raise PollValidationError("Invalid option for this poll")

        replaced = (
            db.query(PollVote)
            .filter(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
            .delete(synchronize_session=False)
        )

        db.add_all([
            PollVote(poll_id=poll_id, option_id=option_id, user_id=user_id)
            for option_id in selected
        ])
        db.commit()
    except Exception:
        db.rollback()
        raise

    invalidate_polls_cache()

    logger.info(
        "votes_submitted",
        poll_id=poll_id,
        user_id=user_id,
        option_count=len(selected),
        replaced_votes=replaced,
        retracted=not selected,
    )

    return selected


def get_user_votes(db: Session, poll_id: str, user_id: str) -> List[str]:
    """Return the option IDs a member currently has recorded in a poll.

    Reads the vote rows directly, never the cached poll list, so the result
    reflects the member's latest submission.

    Returns:
        List[str]: option IDs in option display order (empty if not voted)
    """
    rows = (
        db.query(PollVote.option_id)
        .join(PollOption, PollOption.id == PollVote.option_id)
        .filter(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
        .order_by(PollOption.order_index.asc())
        .all()
    )
    return [option_id for (option_id,) in rows]


def get_user_votes_bulk(db: Session, user_id: str) -> Dict[str, List[str]]:
    """
    Get a member's recorded option IDs for every poll in one query.

    Returns:
        Dict mapping poll_id -> option IDs in display order. Polls the
        member has not voted in are absent.
    """
    rows = (
        db.query(PollVote.poll_id, PollVote.option_id)
        .join(PollOption, PollOption.id == PollVote.option_id)
        .filter(PollVote.user_id == user_id)
        .order_by(PollVote.poll_id, PollOption.order_index.asc())
        .all()
    )

    votes_by_poll: Dict[str, List[str]] = {}
    for poll_id, option_id in rows:
        votes_by_poll.setdefault(poll_id, []).append(option_id)
    return votes_by_poll
