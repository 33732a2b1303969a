from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from auth import get_owner
from db import get_session
from durations import utcnow
from stats import compute_stats

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats")
def get_stats(
    request: Request,
    db: Session = Depends(get_session),
    owner: str | None = Depends(get_owner),
):
    """Dashboard figures: today, all-time total, tasks this week, running."""
    tz = ZoneInfo(request.app.state.settings.timezone)
    return compute_stats(db, owner, utcnow(), tz)
