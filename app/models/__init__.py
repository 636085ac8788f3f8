from app.models.study_progress import StudyProgress, StudyActivity, ActivityType, TabName, TAB_COLUMNS
from app.models.chat_limit import ChatLimit

__all__ = [
    "StudyProgress",
    "StudyActivity",
    "ActivityType",
    "TabName",
    "TAB_COLUMNS",
    "ChatLimit",
]
