"""create production tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "scripts",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("concept_id", sa.Integer(), nullable=True, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("content", sa.JSON(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("aspect_ratios", sa.JSON(), nullable=False),
        sa.Column("text_overlays", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(30), server_default="DRAFT", nullable=False, index=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("scripts.id", ondelete="SET NULL"), nullable=True, index=True),
        *_timestamps(),
    )

    op.create_table(
        "production_requirements",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("script_id", sa.Integer(), sa.ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("location_type", sa.String(100), nullable=False),
        sa.Column("talent_needed", sa.String(255), nullable=False),
        sa.Column("props_required", sa.JSON(), nullable=False),
        sa.Column("product_samples", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("sample_quantity", sa.Integer(), nullable=True),
        sa.Column("equipment_notes", sa.Text(), nullable=True),
        sa.Column("frame_rate", sa.Integer(), server_default="30", nullable=False),
        sa.Column("audio_type", sa.JSON(), nullable=False),
        sa.Column("style_reference", sa.Text(), nullable=True),
        sa.Column("transitions", sa.String(255), nullable=True),
        sa.Column("color_grade", sa.String(255), nullable=True),
        sa.Column("music_style", sa.String(255), nullable=True),
        sa.Column("deliverables", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(100), nullable=False),
        sa.Column("capacity_hours", sa.Float(), server_default="8", nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), server_default="QUEUED", nullable=False, index=True),
        sa.Column("script_id", sa.Integer(), sa.ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("assignee_id", sa.Integer(), sa.ForeignKey("team_members.id", ondelete="SET NULL"), nullable=True),
        sa.Column("estimated_time", sa.Float(), nullable=False),
        sa.Column("actual_time", sa.Float(), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("blockers", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tasks_assignee_status", "tasks", ["assignee_id", "status"])
    # One task per pipeline stage per script; REVISION may repeat
    op.create_index(
        "uq_tasks_script_stage",
        "tasks",
        ["script_id", "type"],
        unique=True,
        postgresql_where=sa.text("type <> 'REVISION'"),
        sqlite_where=sa.text("type <> 'REVISION'"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("action", sa.String(100), nullable=False, index=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("uq_tasks_script_stage", table_name="tasks")
    op.drop_index("ix_tasks_assignee_status", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("team_members")
    op.drop_table("production_requirements")
    op.drop_table("scripts")
