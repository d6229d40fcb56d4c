"""Activity history endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_member, get_db
from app.schemas import HistoryItemResponse
from app.services.history import get_history

router = APIRouter()


@router.get("", response_model=List[HistoryItemResponse], dependencies=[Depends(get_current_member)])
def list_history_endpoint(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Most recent activity first (poll created, updated, deleted, voted on)."""
    return get_history(db, limit)
