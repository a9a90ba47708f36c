"""Snapshot generation bookkeeping and the write handle used to populate a generation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from models.region_model import Region
from models.skill_demand_model import SkillDemand
from models.skill_model import Skill
from models.snapshot_model import (
	SNAPSHOT_ACTIVE,
	SNAPSHOT_FAILED,
	SNAPSHOT_STAGING,
	Snapshot,
)

logger = logging.getLogger(__name__)


class SnapshotWriteError(ValueError):
	"""Raised when a scraper tries to persist an invalid region, skill or demand record."""


def active_snapshot_id_subquery():
	"""Scalar subquery resolving the active snapshot id inside the statement that uses it."""
	return (
		select(Snapshot.id)
		.where(Snapshot.status == SNAPSHOT_ACTIVE)
		.order_by(Snapshot.id.desc())
		.limit(1)
		.scalar_subquery()
	)


def get_active_snapshot_id(db: Session) -> int | None:
	return db.execute(select(active_snapshot_id_subquery())).scalar()


def create_snapshot(db: Session, status: str = SNAPSHOT_STAGING) -> Snapshot:
	"""Insert a new generation row and return it with its id assigned."""
	snapshot = Snapshot(status=status)
	if status == SNAPSHOT_ACTIVE:
		snapshot.activated_at = datetime.now(timezone.utc)
	db.add(snapshot)
	db.flush()
	return snapshot


def ensure_active_snapshot(db: Session) -> int:
	"""Return the active snapshot id, creating an empty active generation when none exists."""
	snapshot_id = get_active_snapshot_id(db)
	if snapshot_id is None:
		snapshot_id = create_snapshot(db, status=SNAPSHOT_ACTIVE).id
		logger.info("snapshot_created | snapshot_id=%s | status=%s", snapshot_id, SNAPSHOT_ACTIVE)
	return snapshot_id


def delete_snapshot_rows(db: Session, snapshot_ids: list[int] | None = None) -> None:
	"""Delete demand, region and skill rows child-before-parent; all generations when ids is None."""
	for model in (SkillDemand, Region, Skill):
		statement = delete(model)
		if snapshot_ids is not None:
			statement = statement.where(model.snapshot_id.in_(snapshot_ids))
		db.execute(statement)


def activate_snapshot(db: Session, snapshot_id: int) -> list[int]:
	"""Swap the active pointer to ``snapshot_id`` and purge the generations it replaces.

	Runs inside the caller's transaction; nothing is visible to readers until
	the caller commits, at which point the old and new generations trade places
	atomically. Every other generation row (the replaced active one and any
	failed or abandoned staging ones) is purged with its data, so the snapshots
	table keeps a single row per successful refresh. Returns the ids of the
	generations that were active before the swap.
	"""
	superseded = db.execute(select(Snapshot.id, Snapshot.status).where(Snapshot.id != snapshot_id)).all()
	retired_ids = [row.id for row in superseded if row.status == SNAPSHOT_ACTIVE]
	superseded_ids = [row.id for row in superseded]
	if superseded_ids:
		delete_snapshot_rows(db, superseded_ids)
		db.execute(delete(Snapshot).where(Snapshot.id.in_(superseded_ids)))
	db.execute(
		update(Snapshot)
		.where(Snapshot.id == snapshot_id)
		.values(status=SNAPSHOT_ACTIVE, activated_at=datetime.now(timezone.utc))
	)
	return retired_ids


def discard_snapshot(db: Session, snapshot_id: int) -> None:
	"""Drop whatever a failed staging generation managed to write and mark it failed."""
	delete_snapshot_rows(db, [snapshot_id])
	db.execute(update(Snapshot).where(Snapshot.id == snapshot_id).values(status=SNAPSHOT_FAILED))


class SnapshotWriter:
	"""Store handle a scraper persists one generation of regions, skills and demand through."""

	def __init__(self, db: Session, snapshot_id: int) -> None:
		self.db = db
		self.snapshot_id = snapshot_id
		self.regions_written = 0
		self.skills_written = 0
		self.demands_written = 0

	def add_region(self, name: str, slug: str) -> Region:
		if not name or not name.strip():
			raise SnapshotWriteError("Region name cannot be empty.")
		if not slug or not slug.strip():
			raise SnapshotWriteError("Region slug cannot be empty.")
		region = Region(snapshot_id=self.snapshot_id, name=name.strip(), slug=slug.strip())
		self.db.add(region)
		self.regions_written += 1
		return region

	def add_skill(self, name: str, category: str) -> Skill:
		if not name or not name.strip():
			raise SnapshotWriteError("Skill name cannot be empty.")
		skill = Skill(snapshot_id=self.snapshot_id, name=name.strip(), category=(category or "").strip())
		self.db.add(skill)
		self.skills_written += 1
		return skill

	def add_demand(
		self,
		region: Region,
		skill: Skill,
		count: int,
		last_updated: datetime | None = None,
	) -> SkillDemand:
		if isinstance(count, bool) or not isinstance(count, int):
			raise SnapshotWriteError(f"Demand count must be an integer; received {count!r}.")
		if count < 0:
			raise SnapshotWriteError(f"Demand count cannot be negative; received {count}.")
		if region.snapshot_id != self.snapshot_id or skill.snapshot_id != self.snapshot_id:
			raise SnapshotWriteError("Demand rows must reference a region and skill from the same snapshot.")

		demand = SkillDemand(
			snapshot_id=self.snapshot_id,
			region=region,
			skill=skill,
			count=count,
			last_updated=last_updated or datetime.now(timezone.utc),
		)
		self.db.add(demand)
		self.demands_written += 1
		return demand

	def flush(self) -> None:
		self.db.flush()
