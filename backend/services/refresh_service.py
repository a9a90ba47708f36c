"""Refresh coordination: replace the stored skill demand snapshot with a fresh scrape.

Two strategies are supported. ``staged`` builds the new generation next to
the active one and swaps the active pointer in a single transaction, so a
failed scrape leaves the previous data in place and readers never see an
empty store. ``in_place`` clears every table first and then scrapes; a failed
scrape leaves the store empty until the next successful refresh.

Refreshes are serialized through a process-wide lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from models.snapshot_model import SNAPSHOT_STAGING
from services.scraper_service import Scraper
from services.snapshot_service import (
	SnapshotWriter,
	activate_snapshot,
	create_snapshot,
	delete_snapshot_rows,
	discard_snapshot,
	ensure_active_snapshot,
)

logger = logging.getLogger(__name__)

REFRESH_STRATEGIES = ("staged", "in_place")

_refresh_lock = threading.Lock()


class RefreshError(RuntimeError):
	"""Raised when the scraper collaborator or the store fails during a refresh."""


class RefreshInProgressError(RefreshError):
	"""Raised when another refresh already holds the refresh lock."""


@dataclass(frozen=True)
class RefreshResult:
	success: bool
	message: str
	timestamp: str


class RefreshCoordinator:
	"""Run one refresh cycle against the store using the given scraper and strategy."""

	def __init__(
		self,
		session_factory: Callable[[], Session],
		scraper: Scraper,
		strategy: str = "staged",
		lock: threading.Lock | None = None,
		lock_timeout_seconds: float = 0.0,
	) -> None:
		if strategy not in REFRESH_STRATEGIES:
			raise ValueError(f"Unknown refresh strategy '{strategy}'. Expected one of {REFRESH_STRATEGIES}.")
		self.session_factory = session_factory
		self.scraper = scraper
		self.strategy = strategy
		self.lock = lock or _refresh_lock
		self.lock_timeout_seconds = lock_timeout_seconds

	def refresh(self) -> RefreshResult:
		"""Replace the stored snapshot with a fresh scrape, raising RefreshError on failure."""
		acquired = (
			self.lock.acquire(timeout=self.lock_timeout_seconds)
			if self.lock_timeout_seconds > 0
			else self.lock.acquire(blocking=False)
		)
		if not acquired:
			logger.warning("refresh_rejected | reason=already_in_progress")
			raise RefreshInProgressError("A refresh is already in progress")

		started = datetime.now(timezone.utc)
		logger.info("refresh_started | strategy=%s", self.strategy)
		try:
			if self.strategy == "staged":
				message = self._refresh_staged()
			else:
				message = self._refresh_in_place()
		finally:
			self.lock.release()

		elapsed_ms = round((datetime.now(timezone.utc) - started).total_seconds() * 1000, 2)
		logger.info("refresh_complete | strategy=%s | elapsed_ms=%s", self.strategy, elapsed_ms)
		return RefreshResult(
			success=True,
			message=message,
			timestamp=datetime.now(timezone.utc).isoformat(),
		)

	def _refresh_staged(self) -> str:
		session = self.session_factory()
		try:
			try:
				snapshot_id = create_snapshot(session, status=SNAPSHOT_STAGING).id
				session.commit()
			except SQLAlchemyError as exc:
				session.rollback()
				logger.exception("refresh_failed | strategy=staged | phase=stage")
				raise RefreshError("Scrape failed") from exc

			try:
				self.scraper.collect_and_persist(SnapshotWriter(session, snapshot_id))
				retired_ids = activate_snapshot(session, snapshot_id)
				session.commit()
			except Exception as exc:
				session.rollback()
				logger.exception("refresh_failed | strategy=staged | snapshot_id=%s", snapshot_id)
				self._discard(session, snapshot_id)
				raise RefreshError("Scrape failed") from exc

			logger.info(
				"snapshot_activated | snapshot_id=%s | retired_snapshot_ids=%s",
				snapshot_id,
				retired_ids,
			)
			return "Scrape completed and new snapshot activated successfully"
		finally:
			session.close()

	def _discard(self, session: Session, snapshot_id: int) -> None:
		try:
			discard_snapshot(session, snapshot_id)
			session.commit()
		except Exception:
			session.rollback()
			logger.exception("snapshot_discard_failed | snapshot_id=%s", snapshot_id)

	def _refresh_in_place(self) -> str:
		session = self.session_factory()
		try:
			try:
				delete_snapshot_rows(session)
				snapshot_id = ensure_active_snapshot(session)
				session.commit()
			except Exception as exc:
				session.rollback()
				logger.exception("refresh_failed | strategy=in_place | phase=clear")
				raise RefreshError("Scrape failed") from exc

			try:
				self.scraper.collect_and_persist(SnapshotWriter(session, snapshot_id))
				session.commit()
			except Exception as exc:
				session.rollback()
				logger.exception(
					"refresh_failed | strategy=in_place | phase=scrape | snapshot_id=%s | store_left_empty=true",
					snapshot_id,
				)
				raise RefreshError("Scrape failed") from exc

			return "Database cleared and scrape completed successfully"
		finally:
			session.close()


def run_refresh(session_factory: Callable[[], Session], scraper: Scraper) -> RefreshResult:
	"""Run a refresh with the configured strategy and lock timeout."""
	settings = get_settings()
	coordinator = RefreshCoordinator(
		session_factory=session_factory,
		scraper=scraper,
		strategy=settings.refresh_strategy,
		lock_timeout_seconds=settings.refresh_lock_timeout_seconds,
	)
	return coordinator.refresh()
