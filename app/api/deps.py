from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.db.database import get_db
from app.services.chat_quota import ChatQuotaGate
from app.services.progress_tracker import ProgressTracker


def get_progress_tracker(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ProgressTracker:
    return ProgressTracker(db, clock)


def get_chat_quota_gate(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ChatQuotaGate:
    return ChatQuotaGate(db, clock)
