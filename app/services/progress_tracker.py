"""Per-lecture study progress tracking.

Activity events from the lecture view (tab visits, scrolling, reading time,
interactions) are folded into a 0-100 score per tab. Scores only ever move
up: every update stores ``max(current, candidate)`` capped at 100. The
record's total is the mean of the four tabs rounded to two decimals.
"""

import logging
import math
from typing import Any

from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.config import settings
from app.core.exceptions import InvalidArgument
from app.db.database import (
    ID_LENGTH,
    LABEL_LENGTH,
    MAX_INTEGER,
    MIN_INTEGER,
    get_or_create,
    storage_guard,
)
from app.models.study_progress import ActivityType, StudyActivity, StudyProgress, TAB_COLUMNS

logger = logging.getLogger(__name__)

TAB_VISIT_FLOOR = 10.0
SCROLL_FULL_THRESHOLD = 80.0
SCROLL_CAP = 60.0
SCROLL_WEIGHT = 0.6
LONG_READ_SECONDS = 30
SHORT_READ_SECONDS = 10
LONG_READ_CREDIT = 30.0
SHORT_READ_CREDIT = 20.0
INTERACTION_STEP = 15.0
MAX_PROGRESS = 100.0


def _finite(value) -> float:
    """Coerce missing or non-finite input to 0."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except OverflowError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def _column_float(value) -> float | None:
    """History copy of a raw value; anything a FLOAT column can't hold becomes NULL."""
    if value is None:
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def _column_int(value) -> int | None:
    """History copy of a raw duration, clamped to the INTEGER column range."""
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return min(max(int(value), MIN_INTEGER), MAX_INTEGER)


def compute_tab_progress(
    current: float,
    activity_type: str,
    progress_value: float | None = None,
    duration: int | None = None,
) -> float:
    """Return the candidate score an activity earns for a tab currently at ``current``.

    The caller merges the candidate with ``max(current, candidate)``; this
    function only decides what the event is worth. Unknown activity types
    are worth nothing beyond the current value.
    """
    progress_value = _finite(progress_value)
    seconds = _finite(duration)

    if activity_type == ActivityType.TAB_VISIT.value:
        return TAB_VISIT_FLOOR if current < TAB_VISIT_FLOOR else current

    if activity_type == ActivityType.SCROLL.value:
        if progress_value > SCROLL_FULL_THRESHOLD:
            return SCROLL_CAP
        return progress_value * SCROLL_WEIGHT

    if activity_type == ActivityType.TIME_SPENT.value:
        if seconds > LONG_READ_SECONDS:
            return LONG_READ_CREDIT
        if seconds > SHORT_READ_SECONDS:
            return SHORT_READ_CREDIT
        return current

    if activity_type == ActivityType.INTERACTION.value:
        if progress_value > 0:
            return min(progress_value, MAX_PROGRESS)
        return min(current + INTERACTION_STEP, MAX_PROGRESS)

    return current


def merge_tab_progress(current: float, candidate: float) -> float:
    """Monotonic merge: never below ``current``, never outside [0, 100]."""
    return max(0.0, min(MAX_PROGRESS, max(current, candidate)))


def compute_total_progress(tab_values: list[float]) -> float:
    return round(sum(tab_values) / len(tab_values), 2)


class ProgressTracker:
    """Ingests activity events and serves progress records."""

    def __init__(self, db: Session, clock: Clock, strict: bool | None = None):
        self.db = db
        self.clock = clock
        self.strict = settings.strict_concurrency if strict is None else strict

    def _load(self, user_id: str, lecture_id: str, for_update: bool = False) -> StudyProgress:
        progress, created = get_or_create(
            self.db,
            StudyProgress,
            defaults={"last_updated": self.clock.now()},
            for_update=for_update,
            user_id=user_id,
            lecture_id=lecture_id,
        )
        if created:
            logger.info("Created study progress for user %s, lecture %s", user_id, lecture_id)
        return progress

    @staticmethod
    def _require_ids(user_id: str | None, lecture_id: str | None) -> None:
        if not user_id or not lecture_id:
            raise InvalidArgument("Missing userId or lectureId")
        if len(user_id) > ID_LENGTH or len(lecture_id) > ID_LENGTH:
            raise InvalidArgument(f"userId and lectureId must be at most {ID_LENGTH} characters")

    def record_activity(
        self,
        user_id: str,
        lecture_id: str,
        activity_type: str,
        tab_name: str | None = None,
        progress_value: float | None = None,
        duration: int | None = None,
        metadata: Any = None,
    ) -> StudyProgress:
        """Apply one activity event and return the updated record.

        Events without a recognised tab name are still accepted (and kept in
        the history) but leave every tab score untouched. The history row
        keeps a column-safe copy: labels cut to ``LABEL_LENGTH`` and numbers
        clamped, while scoring always sees the values as sent.
        """
        self._require_ids(user_id, lecture_id)
        if not activity_type:
            raise InvalidArgument("Missing activityType")

        with storage_guard(self.db, "record_activity"):
            progress = self._load(user_id, lecture_id, for_update=self.strict)
            now = self.clock.now()

            if settings.activity_history_enabled:
                self.db.add(StudyActivity(
                    study_progress_id=progress.id,
                    user_id=user_id,
                    lecture_id=lecture_id,
                    activity_type=activity_type[:LABEL_LENGTH],
                    tab_name=tab_name[:LABEL_LENGTH] if tab_name else tab_name,
                    progress_value=_column_float(progress_value),
                    duration=_column_int(duration),
                    activity_metadata=metadata,
                    created_at=now,
                ))

            column = TAB_COLUMNS.get(tab_name) if tab_name else None
            if column:
                current = getattr(progress, column) or 0.0
                candidate = compute_tab_progress(current, activity_type, progress_value, duration)
                updated = merge_tab_progress(current, candidate)
                setattr(progress, column, updated)
                logger.debug(
                    "Progress %s/%s %s %s: %.2f -> %.2f",
                    user_id, lecture_id, tab_name, activity_type, current, updated,
                )
            elif tab_name:
                logger.debug("Ignoring unknown tab %r for user %s", tab_name, user_id)

            progress.total_progress = compute_total_progress(progress.tab_values())
            progress.last_updated = now
            self.db.commit()
            self.db.refresh(progress)

        return progress

    def get_progress(self, user_id: str, lecture_id: str) -> StudyProgress:
        """Return the record for a user and lecture, creating a zeroed one if needed."""
        self._require_ids(user_id, lecture_id)
        with storage_guard(self.db, "get_progress"):
            progress = self._load(user_id, lecture_id)
            self.db.commit()
            self.db.refresh(progress)
        return progress

    def list_activities(self, user_id: str, lecture_id: str, limit: int | None = None) -> list[StudyActivity]:
        self._require_ids(user_id, lecture_id)
        limit = settings.activity_history_limit if limit is None else limit
        with storage_guard(self.db, "list_activities"):
            return (
                self.db.query(StudyActivity)
                .filter(StudyActivity.user_id == user_id, StudyActivity.lecture_id == lecture_id)
                .order_by(StudyActivity.created_at.desc(), StudyActivity.id.desc())
                .limit(limit)
                .all()
            )

    def list_user_progress(self, user_id: str) -> list[StudyProgress]:
        """All of a user's lecture records, most recently touched first."""
        if not user_id:
            raise InvalidArgument("Missing userId")
        with storage_guard(self.db, "list_user_progress"):
            return (
                self.db.query(StudyProgress)
                .filter(StudyProgress.user_id == user_id)
                .order_by(StudyProgress.last_updated.desc(), StudyProgress.id.desc())
                .all()
            )
