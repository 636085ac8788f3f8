from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.sql import func

from app.db.database import Base, ID_LENGTH


class ChatLimit(Base):
    """Per-user daily allowance of AI chat calls."""

    __tablename__ = "chat_limits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(ID_LENGTH), unique=True, nullable=False, index=True)
    daily_limit = Column(Integer, nullable=False, default=3)
    used_count = Column(Integer, nullable=False, default=0)
    last_reset_date = Column(Date, nullable=False)  # calendar date, not a timestamp

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def remaining_count(self) -> int:
        return max(self.daily_limit - self.used_count, 0)

    @property
    def can_chat(self) -> bool:
        return self.used_count < self.daily_limit
