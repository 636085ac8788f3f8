from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for payloads exchanged with the web client (camelCase on the wire)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ActivityCreate(CamelModel):
    """A learning activity reported by the lecture view.

    Identifiers are optional here so that a missing one is reported as a
    400 by the tracker rather than a schema error.
    """
    user_id: str | None = None
    lecture_id: str | None = None
    activity_type: str | None = None  # tab_visit, scroll, time_spent, interaction
    tab_name: str | None = None  # search, chat, quiz, flashcard
    progress_value: float | None = None  # 0-100
    duration: int | None = None  # seconds
    metadata: Any = None


class StudyProgressResponse(CamelModel):
    id: int
    user_id: str
    lecture_id: str
    search_tab_progress: float = 0.0
    chat_tab_progress: float = 0.0
    quiz_tab_progress: float = 0.0
    flashcard_tab_progress: float = 0.0
    total_progress: float = 0.0
    last_updated: datetime | None = None


class StudyActivityResponse(CamelModel):
    id: int
    activity_type: str
    tab_name: str | None = None
    progress_value: float | None = None
    duration: int | None = None
    metadata: Any = Field(default=None, validation_alias="activity_metadata")
    created_at: datetime | None = None


class StudyProgressEnvelope(CamelModel):
    success: bool = True
    study_progress: StudyProgressResponse


class StudyProgressDetailEnvelope(CamelModel):
    success: bool = True
    study_progress: StudyProgressResponse
    activities: list[StudyActivityResponse] = []


class StudyProgressListEnvelope(CamelModel):
    success: bool = True
    study_progress: list[StudyProgressResponse]
