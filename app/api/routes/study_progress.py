from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import get_progress_tracker
from app.core.config import settings
from app.core.exceptions import InvalidArgument
from app.core.rate_limit import limiter
from app.schemas.study_progress import (
    ActivityCreate,
    StudyProgressDetailEnvelope,
    StudyProgressEnvelope,
    StudyProgressListEnvelope,
)
from app.services.progress_tracker import ProgressTracker

router = APIRouter(prefix="/study-progress", tags=["Study Progress"])


@router.post("", response_model=StudyProgressEnvelope)
@limiter.limit(settings.activity_rate_limit)
def record_activity(
    request: Request,
    activity: ActivityCreate,
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    """Fold one learning activity into the user's progress for a lecture."""
    request.state.user_id = activity.user_id
    try:
        progress = tracker.record_activity(
            user_id=activity.user_id,
            lecture_id=activity.lecture_id,
            activity_type=activity.activity_type,
            tab_name=activity.tab_name,
            progress_value=activity.progress_value,
            duration=activity.duration,
            metadata=activity.metadata,
        )
    except InvalidArgument as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "study_progress": progress}


@router.get("", response_model=StudyProgressDetailEnvelope)
def get_study_progress(
    user_id: str | None = Query(None, alias="userId"),
    lecture_id: str | None = Query(None, alias="lectureId"),
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    """Progress for one lecture plus its recent activity history."""
    try:
        progress = tracker.get_progress(user_id, lecture_id)
        activities = tracker.list_activities(user_id, lecture_id)
    except InvalidArgument as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "study_progress": progress, "activities": activities}


@router.get("/users/{user_id}", response_model=StudyProgressListEnvelope)
def list_user_progress(
    user_id: str,
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    return {"success": True, "study_progress": tracker.list_user_progress(user_id)}
