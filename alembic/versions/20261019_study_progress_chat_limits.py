"""Create study progress, activity history and chat limit tables."""
import sqlalchemy as sa
from alembic import op

revision = "20261019_study_progress_chat_limits"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "study_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("lecture_id", sa.String(255), nullable=False),
        sa.Column("search_tab_progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("chat_tab_progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("quiz_tab_progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("flashcard_tab_progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "lecture_id", name="uq_study_progress_user_lecture"),
    )
    op.create_index("ix_study_progress_id", "study_progress", ["id"])
    op.create_index("ix_study_progress_user_updated", "study_progress", ["user_id", "last_updated"])

    op.create_table(
        "study_activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "study_progress_id",
            sa.Integer(),
            sa.ForeignKey("study_progress.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("lecture_id", sa.String(255), nullable=False),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("tab_name", sa.String(50), nullable=True),
        sa.Column("progress_value", sa.Float(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_study_activities_id", "study_activities", ["id"])
    op.create_index(
        "ix_study_activities_user_lecture_created",
        "study_activities",
        ["user_id", "lecture_id", "created_at"],
    )

    op.create_table(
        "chat_limits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("daily_limit", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_reset_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_chat_limits_id", "chat_limits", ["id"])
    op.create_index("ix_chat_limits_user_id", "chat_limits", ["user_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_chat_limits_user_id", table_name="chat_limits")
    op.drop_index("ix_chat_limits_id", table_name="chat_limits")
    op.drop_table("chat_limits")
    op.drop_index("ix_study_activities_user_lecture_created", table_name="study_activities")
    op.drop_index("ix_study_activities_id", table_name="study_activities")
    op.drop_table("study_activities")
    op.drop_index("ix_study_progress_user_updated", table_name="study_progress")
    op.drop_index("ix_study_progress_id", table_name="study_progress")
    op.drop_table("study_progress")
