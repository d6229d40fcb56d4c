"""Pydantic schemas for request/response validation."""
from app.schemas.poll import (
    PollCreate,
    PollUpdate,
    PollOptionAggregate,
    PollAggregate,
    OptionTally,
    PollResults,
    PollViewState,
    PollWithViewState,
)
from app.schemas.vote import VoteRequest
from app.schemas.history import HistoryItemResponse
from app.schemas.common import SuccessResponse, ErrorResponse, ErrorDetail

__all__ = [
    "PollCreate",
    "PollUpdate",
    "PollOptionAggregate",
    "PollAggregate",
    "OptionTally",
    "PollResults",
    "PollViewState",
    "PollWithViewState",
    "VoteRequest",
    "HistoryItemResponse",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
