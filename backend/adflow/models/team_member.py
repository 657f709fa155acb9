from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adflow.db.base import Base


class TeamMember(Base):
    __tablename__ = "team_members"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity_hours: Mapped[float] = mapped_column(Float, default=8, server_default="8")

    tasks = relationship("Task", back_populates="assignee", lazy="raise")
