"""Poll business logic."""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.cache import TTLCache, get_or_fetch, global_cache
from app.core.config import settings
from app.core.constants import MIN_POLL_OPTIONS, POLL_TYPES, POLLS_CACHE_KEY
from app.core.errors import (
    PollNotFoundError,
    PollPermissionError,
    PollValidationError,
    StalePollVersionError,
)
from app.core.logging_config import get_logger
from app.core.retry import with_retry
from app.core.sanitization import (
    sanitize_option_texts,
    sanitize_poll_description,
    sanitize_poll_title,
)
from app.core.security import MemberContext
from app.core.utils import to_utc, utcnow
from app.db.models import Poll, PollOption, PollVote
from app.schemas.poll import PollAggregate
from app.services.mappers import group_by_key, to_poll_aggregate

logger = get_logger(__name__)


def invalidate_polls_cache(cache: Optional[TTLCache] = None) -> None:
    """Drop the cached poll list after any write."""
    (cache or global_cache).invalidate(POLLS_CACHE_KEY)


def validate_poll_input(
    title: str,
    option_texts: List[str],
    description: Optional[str] = None,
    poll_type: str = "single",
) -> Tuple[str, Optional[str], List[str]]:
    """
    Validate and sanitize poll fields before they reach the database.

    Returns:
        (title, description, option_texts) cleaned

    Raises:
        PollValidationError: empty title, unknown type, or fewer than two
            non-blank options
    """
    try:
        clean_title = sanitize_poll_title(title)
        clean_description = sanitize_poll_description(description)
        clean_options = sanitize_option_texts(option_texts)
    except ValueError as e:
        raise PollValidationError(str(e)) from e

    if poll_type not in POLL_TYPES:
        raise PollValidationError("Poll type must be 'single' or 'multiple'")

    if len(clean_options) < MIN_POLL_OPTIONS:
        raise PollValidationError(f"Please add at least {MIN_POLL_OPTIONS} options")

    return clean_title, clean_description, clean_options


def _fetch_polls(db: Session) -> List[PollAggregate]:
    """Load polls, options and votes as three flat queries and join them in memory."""
    polls = db.query(Poll).order_by(Poll.created_at.desc()).all()
    if not polls:
        return []

    options = db.query(PollOption).order_by(PollOption.order_index.asc()).all()
    votes = db.query(PollVote.option_id, PollVote.user_id).order_by(PollVote.created_at.asc()).all()

    options_by_poll = group_by_key(options, "poll_id")
    votes_by_option = {}
    for option_id, user_id in votes:
        votes_by_option.setdefault(option_id, []).append(user_id)

    return [
        to_poll_aggregate(poll, options_by_poll.get(poll.id, []), votes_by_option)
        for poll in polls
    ]


def load_polls(
    db: Session,
    cache: Optional[TTLCache] = None,
    ttl_seconds: Optional[float] = None,
) -> List[PollAggregate]:
    """
    Load every poll, newest first, with ordered options and their voters.

    The result is cached for POLLS_CACHE_TTL seconds; all write paths in
    this module and the vote service invalidate it. Transient database
    failures are retried with backoff.

    Args:
        db: Database session
        cache: Optional TTLCache instance (uses global cache if None)
        ttl_seconds: Override for the cache TTL (0 disables caching)

    Returns:
        List of poll aggregates
    """
    if cache is None:
        cache = global_cache
    if ttl_seconds is None:
        ttl_seconds = settings.POLLS_CACHE_TTL

    # Backoff sleeps happen outside the cache lock
    return with_retry(
        lambda: get_or_fetch(cache, POLLS_CACHE_KEY, lambda: _fetch_polls(db), ttl_seconds),
        on_retry=lambda exc: db.rollback(),
    )


def get_poll(db: Session, poll_id: str) -> Optional[PollAggregate]:
    """Load a single poll aggregate straight from the database."""
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        return None

    options = (
        db.query(PollOption)
        .filter(PollOption.poll_id == poll_id)
        .order_by(PollOption.order_index.asc())
        .all()
    )
    votes = (
        db.query(PollVote.option_id, PollVote.user_id)
        .filter(PollVote.poll_id == poll_id)
        .order_by(PollVote.created_at.asc())
        .all()
    )

    votes_by_option = {}
    for option_id, user_id in votes:
        votes_by_option.setdefault(option_id, []).append(user_id)

    return to_poll_aggregate(poll, options, votes_by_option)


def create_poll(
    db: Session,
    title: str,
    option_texts: List[str],
    creator: MemberContext,
    description: Optional[str] = None,
    poll_type: str = "single",
    end_date: Optional[datetime] = None,
) -> PollAggregate:
    """Create a poll and its options in a single transaction.

    Args:
        db: SQLAlchemy session
        title: Poll title (trimmed, must not be empty)
        option_texts: Option texts in display order; blanks are dropped
        creator: Member creating the poll
        description: Optional description
        poll_type: "single" or "multiple"
        end_date: Optional closing time

    Returns:
        PollAggregate: the created poll, every option with an empty vote list

    Raises:
        PollValidationError before any database call if the input is invalid
    """
    clean_title, clean_description, clean_options = validate_poll_input(
        title, option_texts, description, poll_type
    )

    poll = Poll(
        title=clean_title,
        description=clean_description,
        type=poll_type,
        end_date=to_utc(end_date) if end_date else None,
        is_active=True,
        created_by=creator.user_id,
        created_by_name=creator.name,
        created_by_image=creator.image,
        created_at=utcnow(),
        version=1,
    )
    poll.options = [
        PollOption(text=text, order_index=index)
        for index, text in enumerate(clean_options)
    ]

    try:
        db.add(poll)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(poll)
    invalidate_polls_cache()

    logger.info(
        "poll_created",
        poll_id=poll.id,
        poll_type=poll.type,
        option_count=len(clean_options),
        created_by=creator.user_id,
    )

    return to_poll_aggregate(poll, poll.options, {})


def _get_owned_poll(db: Session, poll_id: str, member: MemberContext, action: str) -> Poll:
    """Fetch a poll for modification, locking the row, and check ownership."""
    poll = db.query(Poll).filter(Poll.id == poll_id).with_for_update().first()
    if not poll:
        raise PollNotFoundError()

    if poll.created_by != member.user_id:
        raise PollPermissionError(f"Only the poll's creator can {action} it")

    return poll


def update_poll(
    db: Session,
    poll_id: str,
    title: str,
    option_texts: List[str],
    member: MemberContext,
    description: Optional[str] = None,
    poll_type: str = "single",
    end_date: Optional[datetime] = None,
    is_active: Optional[bool] = None,
    expected_version: Optional[int] = None,
) -> PollAggregate:
    """Update a poll and replace its entire option set.

    Existing options are deleted together with every vote cast on them, and
    the new options get fresh ids. This happens on every update, whether or
    not the option texts changed: editing a poll resets its results.

    Args:
        db: SQLAlchemy session
        poll_id: ID of the poll to update
        title, option_texts, description, poll_type, end_date: New poll content
        member: Member performing the edit (must be the creator)
        is_active: New active flag, or None to keep the current one
        expected_version: Version the edit is based on; None skips the check

    Returns:
        PollAggregate: the reloaded poll with empty vote lists

    Raises:
        PollValidationError, PollNotFoundError, PollPermissionError,
        StalePollVersionError
    """
    clean_title, clean_description, clean_options = validate_poll_input(
        title, option_texts, description, poll_type
    )

    try:
        poll = _get_owned_poll(db, poll_id, member, "edit")

        if expected_version is not None and expected_version != poll.version:
            raise StalePollVersionError(expected_version, poll.version)

        poll.title = clean_title
        poll.description = clean_description
        poll.type = poll_type
        poll.end_date = to_utc(end_date) if end_date else None
        if is_active is not None:
            poll.is_active = is_active
        poll.version = poll.version + 1
        poll.updated_at = utcnow()

        # Votes go first so the replacement does not depend on the
        # database enforcing ON DELETE CASCADE.
        discarded_votes = (
            db.query(PollVote)
            .filter(PollVote.poll_id == poll_id)
            .delete(synchronize_session=False)
        )
        db.query(PollOption).filter(PollOption.poll_id == poll_id).delete(synchronize_session=False)
        db.expire(poll, ["options"])

        db.add_all([
            PollOption(poll_id=poll_id, text=text, order_index=index)
            for index, text in enumerate(clean_options)
        ])
        db.commit()
    except Exception:
        db.rollback()
        raise

    invalidate_polls_cache()

    logger.info(
        "poll_updated",
        poll_id=poll_id,
        version=poll.version,
        option_count=len(clean_options),
        discarded_votes=discarded_votes,
    )

    updated = get_poll(db, poll_id)
    if updated is None:
        raise PollNotFoundError("Poll not found after update")
    return updated


def delete_poll(db: Session, poll_id: str, member: MemberContext) -> str:
    """Delete a poll with its options and votes.

    Returns:
        str: the deleted poll's title

    Raises:
        PollNotFoundError, PollPermissionError
    """
    try:
        poll = _get_owned_poll(db, poll_id, member, "delete")
        title = poll.title

        # Cascade delete handles options, and their votes, through the
        # cascade="all, delete-orphan" relationships
        db.delete(poll)
        db.commit()
    except Exception:
        db.rollback()
        raise

    invalidate_polls_cache()
    logger.info("poll_deleted", poll_id=poll_id, deleted_by=member.user_id)

    return title
