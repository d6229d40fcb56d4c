"""Tallies and the ballot/results presentation gate."""
from datetime import datetime
from typing import List, Optional

from app.core.constants import VIEW_BALLOT, VIEW_RESULTS
from app.core.utils import has_ended
from app.schemas.poll import OptionTally, PollAggregate, PollResults, PollViewState


def total_votes(poll: PollAggregate) -> int:
    """Sum of vote rows across the poll's options.

    A member in a multiple-choice poll counts once per selected option.
    """
    return sum(len(option.votes) for option in poll.options)


def option_percentage(votes: int, total: int) -> float:
    """Share of the total as a percentage, 0.0 when nobody has voted."""
    if total <= 0:
        return 0.0
    return votes / total * 100


def tally_poll(poll: PollAggregate, user_id: Optional[str] = None) -> PollResults:
    """Per-option counts and percentages in display order."""
    total = total_votes(poll)

    return PollResults(
        poll_id=poll.id,
        total_votes=total,
        options=[
            OptionTally(
                option_id=option.id,
                text=option.text,
                votes=len(option.votes),
                percentage=round(option_percentage(len(option.votes), total), 1),
                is_user_vote=user_id is not None and user_id in option.votes,
            )
            for option in poll.options
        ],
    )


def is_poll_open(poll, now: Optional[datetime] = None) -> bool:
    """Whether a poll still accepts ballots.

    Accepts both poll rows and aggregates: only is_active and end_date are read.
    """
    return bool(poll.is_active) and not has_ended(poll.end_date, now)


def resolve_view(
    poll: PollAggregate,
    user_votes: List[str],
    results_requested: bool = False,
    now: Optional[datetime] = None,
) -> PollViewState:
    """
    Decide whether a member sees the ballot or the results.

    Results are shown once the member has any recorded vote or asked for
    them explicitly. Changing a vote re-opens the ballot, which is only
    offered while the poll is open.

    Args:
        poll: The poll aggregate
        user_votes: The member's recorded option IDs (from get_user_votes)
        results_requested: Member explicitly asked to see results
        now: Reference time for the end-date check

    Returns:
        PollViewState with the view, the ballot prefill and the change-vote flag
    """
    has_voted = len(user_votes) > 0
    is_open = is_poll_open(poll, now)

    return PollViewState(
        poll_id=poll.id,
        view=VIEW_RESULTS if has_voted or results_requested else VIEW_BALLOT,
        selected=list(user_votes),
        has_voted=has_voted,
        can_change_vote=has_voted and is_open,
        is_open=is_open,
    )
