from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adflow.db.base import Base


class Script(Base):
    """One immutable version of an ad script.

    Editing creates a new row linked through ``parent_id``.
    """

    __tablename__ = "scripts"

    concept_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    content: Mapped[dict] = mapped_column(JSON, default=dict)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    aspect_ratios: Mapped[list] = mapped_column(JSON, default=list)
    text_overlays: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(
        String(30), default="DRAFT", server_default="DRAFT", index=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("scripts.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Relationships
    production_req = relationship(
        "ProductionRequirement",
        back_populates="script",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    tasks = relationship(
        "Task",
        back_populates="script",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    parent = relationship("Script", remote_side="Script.id", lazy="raise")
