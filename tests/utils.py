"""Helpers shared by the test suites."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import MemberContext
from app.db.models import PollVote
from app.schemas.poll import PollAggregate
from app.services.poll import create_poll


def encode_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign claims with the shared secret, as the identity provider does."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {**claims, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_member_token(member: MemberContext, expires_delta: Optional[timedelta] = None) -> str:
    """Session token carrying a member's identity claims."""
    claims = {"sub": member.user_id, "name": member.name}
    if member.image:
        claims["picture"] = member.image
    return encode_token(claims, expires_delta)


def auth_headers(member: MemberContext) -> Dict[str, str]:
    """Authorization header carrying a session token for the member."""
    return {"Authorization": f"Bearer {create_member_token(member)}"}


def make_poll(
    db: Session,
    creator: MemberContext,
    title: str = "Venue",
    options: Optional[List[str]] = None,
    poll_type: str = "single",
    end_date: Optional[datetime] = None,
) -> PollAggregate:
    """Create a poll through the service layer with sensible defaults."""
    return create_poll(
        db,
        title=title,
        option_texts=options if options is not None else ["A", "B", "C"],
        creator=creator,
        poll_type=poll_type,
        end_date=end_date,
    )


def vote_rows(db: Session, poll_id: str, user_id: str) -> List[PollVote]:
    """Raw vote rows for a member in a poll."""
    return (
        db.query(PollVote)
        .filter(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
        .all()
    )


def poll_payload(**overrides) -> dict:
    """JSON body for creating or updating a poll."""
    payload = {
        "title": "Venue",
        "description": "Where should we hold the general assembly?",
        "type": "single",
        "options": ["Town hall", "Library", "Community center"],
    }
    payload.update(overrides)
    return payload
