from app.schemas.study_progress import (
    ActivityCreate,
    StudyProgressResponse,
    StudyActivityResponse,
)
from app.schemas.chat_limit import ChatLimitRequest, ChatLimitUpdate, ChatLimitResponse

__all__ = [
    "ActivityCreate", "StudyProgressResponse", "StudyActivityResponse",
    "ChatLimitRequest", "ChatLimitUpdate", "ChatLimitResponse",
]
