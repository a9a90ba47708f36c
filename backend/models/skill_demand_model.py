"""Persistence model for per-region, per-skill demand counts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
	from models.region_model import Region
	from models.skill_model import Skill


def _utc_now() -> datetime:
	return datetime.now(timezone.utc)


class SkillDemand(Base):
	"""Job-posting mention count of a skill within a region as of ``last_updated``."""

	__tablename__ = "skill_demand"
	__table_args__ = (
		CheckConstraint("count >= 0", name="ck_skill_demand_count_non_negative"),
		Index("ix_skill_demand_region_id", "region_id"),
		Index("ix_skill_demand_skill_id", "skill_id"),
		Index("ix_skill_demand_snapshot_id", "snapshot_id"),
	)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	snapshot_id: Mapped[int] = mapped_column(Integer, ForeignKey("snapshots.id"), nullable=False)
	region_id: Mapped[int] = mapped_column(Integer, ForeignKey("regions.id"), nullable=False)
	skill_id: Mapped[int] = mapped_column(Integer, ForeignKey("skills.id"), nullable=False)
	count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
	last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utc_now)

	region: Mapped["Region"] = relationship("Region", back_populates="demands")
	skill: Mapped["Skill"] = relationship("Skill", back_populates="demands")
