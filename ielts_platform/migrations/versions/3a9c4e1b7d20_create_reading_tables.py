"""create reading tests and attempts

Revision ID: 3a9c4e1b7d20
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3a9c4e1b7d20"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _has_table(inspector, "reading_tests"):
        op.create_table(
            "reading_tests",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("passages", sa.JSON(), nullable=False),
            sa.Column("questions", sa.JSON(), nullable=False),
            sa.Column("questions_by_passage", sa.JSON(), nullable=False),
            sa.Column("metadata", sa.JSON(), nullable=False),
            sa.Column("theme", sa.String(length=32), nullable=False, server_default="mixed"),
            sa.Column("level", sa.String(length=32), nullable=False, server_default="intermediate"),
            sa.Column("total_marks", sa.Integer(), nullable=False, server_default="40"),
            sa.Column("passing_score", sa.Integer(), nullable=False, server_default="24"),
            sa.Column("time_limit", sa.Integer(), nullable=False, server_default="60"),
            sa.Column("total_attempts", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("average_score", sa.Float(), nullable=False, server_default="0"),
            sa.Column("average_time_spent", sa.Float(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("generated_by", sa.String(length=16), nullable=False, server_default="ai"),
            sa.Column("created_by", sa.String(length=64), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("CURRENT_TIMESTAMP"),
            ),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("CURRENT_TIMESTAMP"),
            ),
        )
        op.create_index("ix_reading_tests_theme_level", "reading_tests", ["theme", "level"], unique=False)
        op.create_index(
            "ix_reading_tests_active_created", "reading_tests", ["is_active", "created_at"], unique=False
        )

    if not _has_table(inspector, "reading_test_attempts"):
        op.create_table(
            "reading_test_attempts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(length=64), nullable=False),
            sa.Column(
                "reading_test_id", sa.Integer(), sa.ForeignKey("reading_tests.id"), nullable=False
            ),
            sa.Column("answers", sa.JSON(), nullable=False),
            sa.Column("total_questions", sa.Integer(), nullable=False, server_default="10"),
            sa.Column("correct_answers", sa.Integer(), nullable=False),
            sa.Column("percentage", sa.Float(), nullable=False),
            sa.Column("band_score", sa.Integer(), nullable=False),
            sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
            sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
            sa.Column("total_time_spent", sa.Integer(), nullable=False),
            sa.Column("time_limit", sa.Integer(), nullable=False, server_default="20"),
            sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("performance", sa.JSON(), nullable=False),
            sa.Column("feedback", sa.JSON(), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("CURRENT_TIMESTAMP"),
            ),
        )
        op.create_index(
            "ix_reading_test_attempts_user_id", "reading_test_attempts", ["user_id"], unique=False
        )
        op.create_index(
            "ix_reading_test_attempts_band_score", "reading_test_attempts", ["band_score"], unique=False
        )
        op.create_index(
            "ix_reading_attempts_user_created",
            "reading_test_attempts",
            ["user_id", "created_at"],
            unique=False,
        )
        op.create_index(
            "ix_reading_attempts_test_percentage",
            "reading_test_attempts",
            ["reading_test_id", "percentage"],
            unique=False,
        )


def downgrade():
    op.drop_index("ix_reading_attempts_test_percentage", table_name="reading_test_attempts")
    op.drop_index("ix_reading_attempts_user_created", table_name="reading_test_attempts")
    op.drop_index("ix_reading_test_attempts_band_score", table_name="reading_test_attempts")
    op.drop_index("ix_reading_test_attempts_user_id", table_name="reading_test_attempts")
    op.drop_table("reading_test_attempts")
    op.drop_index("ix_reading_tests_active_created", table_name="reading_tests")
    op.drop_index("ix_reading_tests_theme_level", table_name="reading_tests")
    op.drop_table("reading_tests")
