"""Security and authentication utilities.

Member sessions are issued by the association's identity provider as
HS256 JWTs signed with the shared SECRET_KEY. This service never issues
tokens: it only verifies them and turns the claims into an explicit
MemberContext that is passed down to the service layer.
"""
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import HTTPException, Request

from app.core import config
from app.core.constants import SESSION_COOKIE_NAME


@dataclass(frozen=True)
class MemberContext:
    """Identity of the member making the current request."""

    user_id: str
    name: str
    image: Optional[str] = None


def _extract_token(request: Request) -> Optional[str]:
    """Read the session token from the Authorization header or the session cookie."""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()

    return request.cookies.get(SESSION_COOKIE_NAME)


def get_current_member(request: Request) -> MemberContext:
    """Verify the member session token and return the caller's identity."""
    token = _extract_token(request)

    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    return MemberContext(
        user_id=str(user_id),
        name=payload.get("name") or "Member",
        image=payload.get("picture"),
    )
