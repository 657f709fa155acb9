from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adflow.db.base import Base


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        # One task per pipeline stage per script; REVISION may repeat.
        Index(
            "uq_tasks_script_stage",
            "script_id",
            "type",
            unique=True,
            postgresql_where=text("type <> 'REVISION'"),
            sqlite_where=text("type <> 'REVISION'"),
        ),
        Index("ix_tasks_assignee_status", "assignee_id", "status"),
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default="QUEUED", server_default="QUEUED", index=True
    )
    script_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assignee_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("team_members.id", ondelete="SET NULL"), nullable=True
    )
    estimated_time: Mapped[float] = mapped_column(Float, nullable=False)
    actual_time: Mapped[float | None] = mapped_column(Float, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    scheduled_for: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    blockers: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    script = relationship("Script", back_populates="tasks", lazy="raise")
    assignee = relationship("TeamMember", back_populates="tasks", lazy="selectin")
