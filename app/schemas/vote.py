"""Vote schemas."""
from typing import List
from pydantic import BaseModel, Field, field_validator


class VoteRequest(BaseModel):
    option_ids: List[str] = Field(..., max_length=50, description="Selected option ids; empty retracts the vote")

    @field_validator('option_ids')
    @classmethod
    def strip_option_ids(cls, v: List[str]) -> List[str]:
        """Drop surrounding whitespace and empty ids sent by form controls."""
        return [option_id.strip() for option_id in v if option_id and option_id.strip()]
