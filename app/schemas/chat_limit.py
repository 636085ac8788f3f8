from datetime import date

from app.schemas.study_progress import CamelModel


class ChatLimitRequest(CamelModel):
    """Consume one AI chat call for a user."""
    user_id: str | None = None


class ChatLimitUpdate(CamelModel):
    """Administrative change of a user's daily allowance."""
    user_id: str | None = None
    daily_limit: int | None = None


class ChatLimitResponse(CamelModel):
    user_id: str
    daily_limit: int
    used_count: int
    remaining_count: int
    can_chat: bool
    last_reset_date: date


class ChatLimitEnvelope(CamelModel):
    success: bool = True
    chat_limit: ChatLimitResponse
    error: str | None = None


class ChatLimitListEnvelope(CamelModel):
    success: bool = True
    chat_limits: list[ChatLimitResponse]


class ChatLimitResetResponse(CamelModel):
    success: bool = True
    reset_count: int
