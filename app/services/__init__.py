from .history import get_history, record_history
from .poll import (
    create_poll,
    delete_poll,
    get_poll,
    invalidate_polls_cache,
    load_polls,
    update_poll,
    validate_poll_input,
)
from .tally import (
    is_poll_open,
    option_percentage,
    resolve_view,
    tally_poll,
    total_votes,
)
from .vote import get_user_votes, get_user_votes_bulk, submit_votes

__all__ = [
    # history
    "get_history",
    "record_history",
    # polls
    "create_poll",
    "delete_poll",
    "get_poll",
    "invalidate_polls_cache",
    "load_polls",
    "update_poll",
    "validate_poll_input",
    # tally
    "is_poll_open",
    "option_percentage",
    "resolve_view",
    "tally_poll",
    "total_votes",
    # votes
    "get_user_votes",
    "get_user_votes_bulk",
    "submit_votes",
]
