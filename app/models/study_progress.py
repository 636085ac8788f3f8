import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base, ID_LENGTH, LABEL_LENGTH


class ActivityType(str, enum.Enum):
    TAB_VISIT = "tab_visit"
    SCROLL = "scroll"
    TIME_SPENT = "time_spent"
    INTERACTION = "interaction"


class TabName(str, enum.Enum):
    SEARCH = "search"
    CHAT = "chat"
    QUIZ = "quiz"
    FLASHCARD = "flashcard"


# Tab name -> StudyProgress column holding that tab's score
TAB_COLUMNS = {
    TabName.SEARCH.value: "search_tab_progress",
    TabName.CHAT.value: "chat_tab_progress",
    TabName.QUIZ.value: "quiz_tab_progress",
    TabName.FLASHCARD.value: "flashcard_tab_progress",
}


class StudyProgress(Base):
    __tablename__ = "study_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(ID_LENGTH), nullable=False)
    lecture_id = Column(String(ID_LENGTH), nullable=False)

    # Per-tab completion, 0-100, never decreases
    search_tab_progress = Column(Float, nullable=False, default=0.0)
    chat_tab_progress = Column(Float, nullable=False, default=0.0)
    quiz_tab_progress = Column(Float, nullable=False, default=0.0)
    flashcard_tab_progress = Column(Float, nullable=False, default=0.0)
    total_progress = Column(Float, nullable=False, default=0.0)

    last_updated = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    activities = relationship(
        "StudyActivity",
        back_populates="study_progress",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "lecture_id", name="uq_study_progress_user_lecture"),
        Index("ix_study_progress_user_updated", "user_id", "last_updated"),
    )

    def tab_values(self) -> list[float]:
        return [getattr(self, column) or 0.0 for column in TAB_COLUMNS.values()]


class StudyActivity(Base):
    """Display/audit history of ingested activity events. Not used for scoring."""

    __tablename__ = "study_activities"

    id = Column(Integer, primary_key=True, index=True)
    study_progress_id = Column(
        Integer, ForeignKey("study_progress.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(ID_LENGTH), nullable=False)
    lecture_id = Column(String(ID_LENGTH), nullable=False)

    activity_type = Column(String(LABEL_LENGTH), nullable=False)
    tab_name = Column(String(LABEL_LENGTH), nullable=True)
    progress_value = Column(Float, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    activity_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    study_progress = relationship("StudyProgress", back_populates="activities")

    __table_args__ = (
        Index("ix_study_activities_user_lecture_created", "user_id", "lecture_id", "created_at"),
    )
