"""Scraper collaborator boundary and the seed-file implementation used by default."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Protocol

from config import get_settings
from models.region_model import Region
from models.skill_model import Skill
from services.snapshot_service import SnapshotWriter

logger = logging.getLogger(__name__)

SEED_COLUMNS = ("region", "slug", "skill", "category", "count")


class ScraperError(RuntimeError):
	"""Raised when the collaborator cannot collect or persist a scrape."""


class Scraper(Protocol):
	"""Collects skill demand from its source and persists it through the supplied writer."""

	def collect_and_persist(self, writer: SnapshotWriter) -> None:
		...


class SeedFileScraper:
	"""Populate a snapshot from a CSV export with ``region,slug,skill,category,count`` columns."""

	def __init__(self, path: str | Path) -> None:
		self.path = Path(path)

	def _read_rows(self) -> list[dict[str, str]]:
		if not self.path.exists():
			raise ScraperError(f"Seed file not found: {self.path}")

		with self.path.open("r", encoding="utf-8", newline="") as fp:
			reader = csv.DictReader(fp)
			missing = [column for column in SEED_COLUMNS if column not in (reader.fieldnames or [])]
			if missing:
				raise ScraperError(f"Seed file {self.path} is missing columns: {', '.join(missing)}")
			return [dict(row) for row in reader]

	def collect_and_persist(self, writer: SnapshotWriter) -> None:
		rows = self._read_rows()
		regions: dict[str, Region] = {}
		skills: dict[tuple[str, str], Skill] = {}

		for line_number, row in enumerate(rows, start=2):
			slug = (row["slug"] or "").strip()
			skill_key = ((row["skill"] or "").strip(), (row["category"] or "").strip())
			try:
				count = int(row["count"])
			except (TypeError, ValueError) as exc:
				raise ScraperError(f"Invalid count {row['count']!r} on line {line_number} of {self.path}") from exc

			if slug not in regions:
				regions[slug] = writer.add_region(name=row["region"], slug=slug)
			if skill_key not in skills:
				skills[skill_key] = writer.add_skill(name=skill_key[0], category=skill_key[1])
			writer.add_demand(regions[slug], skills[skill_key], count)

		writer.flush()
		logger.info(
			"seed_scrape_complete | path=%s | regions=%s | skills=%s | demand_rows=%s",
			self.path,
			len(regions),
			len(skills),
			writer.demands_written,
		)


def get_scraper() -> Scraper:
	"""Return the configured scraper collaborator."""
	settings = get_settings()
	seed_path = Path(settings.scraper_seed_path)
	if not seed_path.is_absolute():
		seed_path = Path(__file__).resolve().parent.parent / seed_path
	return SeedFileScraper(seed_path)
