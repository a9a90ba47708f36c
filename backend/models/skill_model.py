"""Persistence model for tracked skills and their category."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
	from models.skill_demand_model import SkillDemand


class Skill(Base):
	__tablename__ = "skills"

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	snapshot_id: Mapped[int] = mapped_column(Integer, ForeignKey("snapshots.id"), nullable=False, index=True)
	name: Mapped[str] = mapped_column(String(160), nullable=False, index=True)
	category: Mapped[str] = mapped_column(String(120), nullable=False)

	demands: Mapped[list["SkillDemand"]] = relationship("SkillDemand", back_populates="skill")
