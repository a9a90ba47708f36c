"""Persistence model for geographic regions addressed by URL-safe slugs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
	from models.skill_demand_model import SkillDemand


class Region(Base):
	"""Administrative area whose slug is unique within a snapshot."""

	__tablename__ = "regions"
	__table_args__ = (UniqueConstraint("snapshot_id", "slug", name="uq_regions_snapshot_slug"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	snapshot_id: Mapped[int] = mapped_column(Integer, ForeignKey("snapshots.id"), nullable=False, index=True)
	name: Mapped[str] = mapped_column(String(120), nullable=False)
	slug: Mapped[str] = mapped_column(String(120), nullable=False, index=True)

	demands: Mapped[list["SkillDemand"]] = relationship("SkillDemand", back_populates="region")
