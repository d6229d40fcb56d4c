"""Shared API dependencies."""
from app.db import get_db
from app.core.security import MemberContext, get_current_member

__all__ = ["get_db", "get_current_member", "MemberContext"]
