"""Poll schemas."""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from app.core.constants import (
    MAX_POLL_DESCRIPTION_LENGTH,
    MAX_POLL_TITLE_LENGTH,
)

PollType = Literal["single", "multiple"]
PollView = Literal["ballot", "results"]


class PollCreate(BaseModel):
    # Trimming, tag stripping and the two-option minimum are enforced by the
    # service layer so every caller gets the same validation errors.
    title: str = Field(..., max_length=MAX_POLL_TITLE_LENGTH * 2)
    description: Optional[str] = Field(None, max_length=MAX_POLL_DESCRIPTION_LENGTH * 2)
    type: PollType = "single"
    end_date: Optional[datetime] = None
    options: List[str] = Field(default_factory=list, max_length=50)


class PollUpdate(PollCreate):
    is_active: Optional[bool] = None
    version: Optional[int] = Field(None, ge=1, description="Version the edit is based on")


class PollOptionAggregate(BaseModel):
    id: str
    text: str
    order_index: int
    votes: List[str] = Field(default_factory=list, description="User ids of voters")


class PollAggregate(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    type: PollType
    end_date: Optional[datetime] = None
    is_active: bool
    created_by: str
    created_by_name: str
    created_by_image: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int
    options: List[PollOptionAggregate]


class OptionTally(BaseModel):
    option_id: str
    text: str
    votes: int
    percentage: float
    is_user_vote: bool = False


class PollResults(BaseModel):
    poll_id: str
    total_votes: int
    options: List[OptionTally]


class PollViewState(BaseModel):
    poll_id: str
    view: PollView
    selected: List[str]
    has_voted: bool
    can_change_vote: bool
    is_open: bool


class PollWithViewState(PollAggregate):
    total_votes: int
    user_state: PollViewState
