"""Persistence model for scrape snapshot generations and the active data pointer."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from database import Base

SNAPSHOT_STAGING = "staging"
SNAPSHOT_ACTIVE = "active"
SNAPSHOT_FAILED = "failed"


class Snapshot(Base):
	"""One generation of scraped data; the single ``active`` row is what reads observe."""

	__tablename__ = "snapshots"
	__table_args__ = (Index("ix_snapshots_status", "status"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	status: Mapped[str] = mapped_column(String(16), nullable=False, default=SNAPSHOT_STAGING)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
	activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
