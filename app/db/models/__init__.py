"""Database models."""
from app.db.models.poll import Poll
from app.db.models.poll_option import PollOption
from app.db.models.poll_vote import PollVote
from app.db.models.history import HistoryItem

__all__ = ["Poll", "PollOption", "PollVote", "HistoryItem"]
