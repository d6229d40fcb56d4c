"""Poll endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import MemberContext, get_current_member, get_db
from app.core.constants import (
    HISTORY_POLL_CREATED,
    HISTORY_POLL_DELETED,
    HISTORY_POLL_UPDATED,
    HISTORY_VOTE_SUBMITTED,
)
from app.core.errors import PollNotFoundError
from app.core.rate_limit import RATE_LIMITS, limiter
from app.schemas import (
    PollAggregate,
    PollCreate,
    PollResults,
    PollUpdate,
    PollViewState,
    PollWithViewState,
    SuccessResponse,
    VoteRequest,
)
from app.services.history import record_history
from app.services.poll import create_poll, delete_poll, get_poll, load_polls, update_poll
from app.services.tally import resolve_view, tally_poll, total_votes
from app.services.vote import get_user_votes, get_user_votes_bulk, submit_votes

router = APIRouter()


def _with_view_state(poll: PollAggregate, user_votes: List[str]) -> PollWithViewState:
    return PollWithViewState(
        **poll.model_dump(),
        total_votes=total_votes(poll),
        user_state=resolve_view(poll, user_votes),
    )


def _require_poll(db: Session, poll_id: str) -> PollAggregate:
    poll = get_poll(db, poll_id)
    if poll is None:
        raise PollNotFoundError()
    return poll


@router.get("", response_model=List[PollWithViewState])
@limiter.limit(RATE_LIMITS["poll_read"])
def list_polls_endpoint(
    request: Request,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """
    List every poll, newest first, with the caller's ballot state.

    Each poll carries its options in display order with the user ids of
    their voters, the total vote count, and a user_state block telling the
    dashboard whether to show the ballot or the results for this member.

    The poll list may be served from a short-lived cache; the member's own
    selections are always read from the vote rows.

    Example:
        Response (200):
            [
                {
                    "id": "6f1c...",
                    "title": "Venue",
                    "type": "single",
                    "options": [
                        {"id": "a1...", "text": "A", "order_index": 0, "votes": ["u1"]},
                        {"id": "b2...", "text": "B", "order_index": 1, "votes": []}
                    ],
                    "total_votes": 1,
                    "user_state": {"view": "results", "selected": ["a1..."], ...},
                    ...
                }
            ]
    """
    polls = load_polls(db)
    votes_by_poll = get_user_votes_bulk(db, member.user_id)

    return [_with_view_state(poll, votes_by_poll.get(poll.id, [])) for poll in polls]


@router.post("", response_model=PollAggregate)
@limiter.limit(RATE_LIMITS["poll_write"])
def create_poll_endpoint(
    request: Request,
    payload: PollCreate,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """
    Create a poll with its options.

    The title is trimmed and must not be empty; blank options are dropped
    and at least two must remain. Options are stored in the order given.

    Raises:
        400 if validation fails
        401 if the session token is missing or invalid

    Example:
        Request:
            POST /api/v1/polls
            {
                "title": "Venue",
                "type": "single",
                "options": ["A", "B", "C"]
            }
    """
    poll = create_poll(
        db,
        title=payload.title,
        option_texts=payload.options,
        creator=member,
        description=payload.description,
        poll_type=payload.type,
        end_date=payload.end_date,
    )
    record_history(db, HISTORY_POLL_CREATED, member, poll.id, poll.title)
    return poll


@router.get("/{poll_id}", response_model=PollWithViewState)
def get_poll_endpoint(
    poll_id: str,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """Get one poll with the caller's ballot state (404 if it does not exist)."""
    poll = _require_poll(db, poll_id)
    return _with_view_state(poll, get_user_votes(db, poll_id, member.user_id))


@router.put("/{poll_id}", response_model=PollAggregate)
@limiter.limit(RATE_LIMITS["poll_write"])
def update_poll_endpoint(
    request: Request,
    poll_id: str,
    payload: PollUpdate,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """
    Update a poll (creator only).

    The option list replaces the existing one entirely. Every vote already
    cast in the poll is discarded, even if the option texts are unchanged.

    Send the poll's current "version" to have the edit rejected with 409 when
    someone else changed the poll in the meantime.

    Raises:
        400 if validation fails
        403 if the caller did not create the poll
        404 if the poll does not exist
        409 if the version is stale
    """
    poll = update_poll(
        db,
        poll_id,
        title=payload.title,
        option_texts=payload.options,
        member=member,
        description=payload.description,
        poll_type=payload.type,
        end_date=payload.end_date,
        is_active=payload.is_active,
        expected_version=payload.version,
    )
    record_history(db, HISTORY_POLL_UPDATED, member, poll.id, poll.title)
    return poll


@router.delete("/{poll_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["poll_write"])
def delete_poll_endpoint(
    request: Request,
    poll_id: str,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
) -> SuccessResponse:
    """Delete a poll with its options and votes (creator only)."""
    title = delete_poll(db, poll_id, member)
    record_history(db, HISTORY_POLL_DELETED, member, poll_id, title)
    return SuccessResponse(success=True, message="Poll deleted")


@router.post("/{poll_id}/votes", response_model=PollViewState)
@limiter.limit(RATE_LIMITS["vote"])
def vote_endpoint(
    request: Request,
    poll_id: str,
    vote_request: VoteRequest,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """
    Cast, change or retract the caller's vote.

    The submitted option ids replace the caller's previous ballot in this
    poll. Single-choice polls keep only the first id. An empty list
    retracts the vote.

    Raises:
        400 if an option id does not belong to the poll
        404 if the poll does not exist
        409 if the poll is closed

    Example:
        Request:
            POST /api/v1/polls/6f1c.../votes
            {"option_ids": ["a1..."]}

        Response (200):
            {"poll_id": "6f1c...", "view": "results", "selected": ["a1..."],
             "has_voted": true, "can_change_vote": true, "is_open": true}
    """
    recorded = submit_votes(db, poll_id, vote_request.option_ids, member.user_id)

    poll = _require_poll(db, poll_id)
    if recorded:
        record_history(db, HISTORY_VOTE_SUBMITTED, member, poll_id, poll.title)

    return resolve_view(poll, get_user_votes(db, poll_id, member.user_id))


@router.get("/{poll_id}/votes/me", response_model=PollViewState)
def my_votes_endpoint(
    poll_id: str,
    show_results: bool = False,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """
    The caller's recorded selection and which view to present.

    Pass show_results=true when the member explicitly asked to see the
    results before voting.
    """
    poll = _require_poll(db, poll_id)
    return resolve_view(poll, get_user_votes(db, poll_id, member.user_id), results_requested=show_results)


@router.get("/{poll_id}/results", response_model=PollResults)
def results_endpoint(
    poll_id: str,
    db: Session = Depends(get_db),
    member: MemberContext = Depends(get_current_member),
):
    """Vote counts and percentages per option, flagging the caller's own votes."""
    poll = _require_poll(db, poll_id)
    return tally_poll(poll, member.user_id)
