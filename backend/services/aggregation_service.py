"""Aggregated read views over regional skill demand: map summary, trends, top skills and exports.

Every query is built by an explicit ``build_*_query`` function so its shape
can be inspected and tested without executing it. Each statement resolves the
active snapshot through a scalar subquery, so a single read never mixes rows
from two scrape generations even while a refresh is swapping them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.region_model import Region
from models.skill_demand_model import SkillDemand
from models.skill_model import Skill
from services.district_config import resolve_region_slugs
from services.snapshot_service import active_snapshot_id_subquery

logger = logging.getLogger(__name__)

SUMMARY_EXPORT_VERSION = "1.0"


class QueryError(RuntimeError):
	"""Raised when the store is unreachable or an aggregate query fails."""


@dataclass(frozen=True)
class RegionDemandRow:
	id: int
	name: str
	slug: str
	totalDemand: int


@dataclass(frozen=True)
class SkillTrendRow:
	skillName: str
	category: str
	count: int
	lastUpdated: datetime | None


@dataclass(frozen=True)
class TopSkillRow:
	skillName: str
	category: str
	totalCount: int


@dataclass(frozen=True)
class DemandExportRow:
	region: str
	skill: str
	category: str
	demandCount: int
	lastUpdated: datetime


@dataclass(frozen=True)
class SkillTotalRow:
	skill: str
	totalDemand: int


def _to_int(value: Any) -> int:
	"""Normalize SQL SUM results (int, Decimal or NULL) into an exact Python int."""
	if value is None:
		return 0
	return int(value)


def build_map_summary_query() -> Select:
	total_demand = func.coalesce(func.sum(SkillDemand.count), 0)
	return (
		select(Region.id, Region.name, Region.slug, total_demand.label("total_demand"))
		.select_from(Region)
		.outerjoin(SkillDemand, SkillDemand.region_id == Region.id)
		.where(Region.snapshot_id == active_snapshot_id_subquery())
		.group_by(Region.id, Region.name, Region.slug)
		.order_by(Region.id.asc())
	)


def build_trends_query(region_slugs: tuple[str, ...]) -> Select:
	total_count = func.sum(SkillDemand.count)
	return (
		select(
			Skill.name,
			Skill.category,
			total_count.label("total_count"),
			func.max(SkillDemand.last_updated).label("last_updated"),
		)
		.select_from(SkillDemand)
		.join(Region, SkillDemand.region_id == Region.id)
		.join(Skill, SkillDemand.skill_id == Skill.id)
		.where(SkillDemand.snapshot_id == active_snapshot_id_subquery())
		.where(Region.slug.in_(region_slugs))
		.group_by(Skill.name, Skill.category)
		.order_by(total_count.desc(), Skill.name.asc(), Skill.category.asc())
	)


def build_top_skills_query(limit: int) -> Select:
	total_count = func.sum(SkillDemand.count)
	return (
		select(Skill.name, Skill.category, total_count.label("total_count"))
		.select_from(SkillDemand)
		.join(Skill, SkillDemand.skill_id == Skill.id)
		.where(SkillDemand.snapshot_id == active_snapshot_id_subquery())
		.group_by(Skill.id, Skill.name, Skill.category)
		.order_by(total_count.desc(), Skill.id.asc())
		.limit(limit)
	)


def build_full_export_query() -> Select:
	return (
		select(
			Region.name.label("region"),
			Skill.name.label("skill"),
			Skill.category,
			SkillDemand.count.label("demand_count"),
			SkillDemand.last_updated,
		)
		.select_from(SkillDemand)
		.join(Region, SkillDemand.region_id == Region.id)
		.join(Skill, SkillDemand.skill_id == Skill.id)
		.where(SkillDemand.snapshot_id == active_snapshot_id_subquery())
		.order_by(SkillDemand.count.desc(), SkillDemand.id.asc())
	)


def build_summary_export_query() -> Select:
	return (
		select(Skill.name, func.sum(SkillDemand.count).label("total_demand"))
		.select_from(SkillDemand)
		.join(Skill, SkillDemand.skill_id == Skill.id)
		.where(SkillDemand.snapshot_id == active_snapshot_id_subquery())
		.group_by(Skill.name)
		.order_by(Skill.name.asc())
	)


def _execute(db: Session, statement: Select, operation: str, failure_message: str) -> list[Any]:
	try:
		return list(db.execute(statement).all())
	except SQLAlchemyError as exc:
		logger.exception("query_failed | operation=%s", operation)
		raise QueryError(failure_message) from exc


def get_map_summary(db: Session) -> list[RegionDemandRow]:
	"""Return total demand per region; regions without demand rows report zero."""
	rows = _execute(db, build_map_summary_query(), "map_summary", "Failed to fetch map summary")
	return [
		RegionDemandRow(id=row.id, name=row.name, slug=row.slug, totalDemand=_to_int(row.total_demand))
		for row in rows
	]


def get_trends(db: Session, slug: str) -> list[SkillTrendRow]:
	"""Return per-skill demand for a region slug or district alias, highest count first."""
	region_slugs = resolve_region_slugs(slug)
	rows = _execute(db, build_trends_query(region_slugs), "trends", "Failed to fetch trends")
	return [
		SkillTrendRow(
			skillName=row.name,
			category=row.category,
			count=_to_int(row.total_count),
			lastUpdated=row.last_updated,
		)
		for row in rows
	]


def get_top_skills(db: Session, limit: int) -> list[TopSkillRow]:
	if limit < 1:
		raise ValueError("limit must be a positive integer.")
	rows = _execute(db, build_top_skills_query(limit), "top_skills", "Failed to fetch top skills")
	return [
		TopSkillRow(skillName=row.name, category=row.category, totalCount=_to_int(row.total_count))
		for row in rows
	]


def get_full_export(db: Session) -> list[DemandExportRow]:
	"""Return one flat row per demand record, largest count first."""
	rows = _execute(db, build_full_export_query(), "full_export", "Failed to generate export")
	return [
		DemandExportRow(
			region=row.region,
			skill=row.skill,
			category=row.category,
			demandCount=_to_int(row.demand_count),
			lastUpdated=row.last_updated,
		)
		for row in rows
	]


def get_summary_export(db: Session) -> dict[str, Any]:
	"""Return national demand totals per skill name wrapped with generation metadata."""
	rows = _execute(db, build_summary_export_query(), "summary_export", "Failed to generate summary export")
	return {
		"generatedAt": datetime.now(timezone.utc).isoformat(),
		"version": SUMMARY_EXPORT_VERSION,
		"data": [asdict(SkillTotalRow(skill=row.name, totalDemand=_to_int(row.total_demand))) for row in rows],
	}
