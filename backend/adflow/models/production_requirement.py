from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adflow.db.base import Base


class ProductionRequirement(Base):
    __tablename__ = "production_requirements"

    script_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scripts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    location_type: Mapped[str] = mapped_column(String(100), nullable=False)
    talent_needed: Mapped[str] = mapped_column(String(255), nullable=False)
    props_required: Mapped[list] = mapped_column(JSON, default=list)
    product_samples: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    sample_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    equipment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    frame_rate: Mapped[int] = mapped_column(Integer, default=30, server_default="30")
    audio_type: Mapped[list] = mapped_column(JSON, default=list)
    style_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    transitions: Mapped[str | None] = mapped_column(String(255), nullable=True)
    color_grade: Mapped[str | None] = mapped_column(String(255), nullable=True)
    music_style: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # [{"aspect_ratio": "9:16", "with_captions": true, "without_captions": false}, ...]
    deliverables: Mapped[list] = mapped_column(JSON, default=list)

    script = relationship("Script", back_populates="production_req")
