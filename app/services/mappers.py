"""Row to aggregate mapping at the database boundary.

Every field is mapped by name exactly once here, so a renamed column fails
loudly instead of silently surfacing as a missing attribute downstream.
"""
from typing import Dict, Iterable, List, Mapping

from app.core.utils import to_utc
from app.db.models import Poll, PollOption
from app.schemas.poll import PollAggregate, PollOptionAggregate


def to_option_aggregate(option: PollOption, voter_ids: Iterable[str]) -> PollOptionAggregate:
    return PollOptionAggregate(
        id=option.id,
        text=option.text,
        order_index=option.order_index,
        votes=list(voter_ids),
    )


def to_poll_aggregate(
    poll: Poll,
    options: Iterable[PollOption],
    votes_by_option: Mapping[str, List[str]],
) -> PollAggregate:
    """
    Build a poll aggregate from its row, its option rows and grouped votes.

    Args:
        poll: The poll row
        options: The poll's option rows (sorted by order_index here)
        votes_by_option: option_id -> voter user ids; missing options have no votes

    Returns:
        PollAggregate with options in display order
    """
    ordered = sorted(options, key=lambda option: option.order_index)

    return PollAggregate(
        id=poll.id,
        title=poll.title,
        description=poll.description or None,
        type=poll.type,
        end_date=to_utc(poll.end_date) if poll.end_date else None,
        is_active=poll.is_active,
        created_by=poll.created_by,
        created_by_name=poll.created_by_name,
        created_by_image=poll.created_by_image or None,
        created_at=to_utc(poll.created_at),
        updated_at=to_utc(poll.updated_at) if poll.updated_at else None,
        version=poll.version,
        options=[
            to_option_aggregate(option, votes_by_option.get(option.id, []))
            for option in ordered
        ],
    )


def group_by_key(rows: Iterable, key: str) -> Dict[str, list]:
    """Group rows by one of their attributes, keeping row order within each group."""
    grouped: Dict[str, list] = {}
    for row in rows:
        grouped.setdefault(getattr(row, key), []).append(row)
    return grouped
