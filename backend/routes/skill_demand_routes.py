"""Skill demand read API: map summary, trends, top skills and exports."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import get_settings
from dependencies import get_db
from services.aggregation_service import (
	get_full_export,
	get_map_summary,
	get_summary_export,
	get_top_skills,
	get_trends,
)

router = APIRouter(tags=["skill-demand"])


def coerce_limit(raw_limit: str | None, default: int, maximum: int = 1000) -> int:
	"""Parse a positive decimal limit capped at ``maximum``, falling back to ``default`` on anything else."""
	if raw_limit is None:
		return default
	digits = raw_limit.strip()
	if not digits or not digits.isascii() or not digits.isdigit():
		return default
	limit = int(digits)
	if limit < 1:
		return default
	return min(limit, maximum)


@router.get("/map-summary", summary="Total demand per region")
def map_summary(db: Session = Depends(get_db)):
	return get_map_summary(db)


@router.get("/trends/{slug}", summary="Skill demand for a region or district")
def trends(slug: str, db: Session = Depends(get_db)):
	return get_trends(db, slug)


@router.get("/top-skills", summary="Most demanded skills across all regions")
def top_skills(limit: str | None = Query(default=None), db: Session = Depends(get_db)):
	settings = get_settings()
	return get_top_skills(
		db,
		coerce_limit(limit, settings.top_skills_default_limit, settings.top_skills_max_limit),
	)


@router.get("/export/csv", summary="Flat demand export for CSV rendering")
def export_csv(db: Session = Depends(get_db)):
	return get_full_export(db)


@router.get("/export/raw", summary="Flat demand export")
def export_raw(db: Session = Depends(get_db)):
	return get_full_export(db)


@router.get("/export/summary", summary="National demand totals per skill")
def export_summary(db: Session = Depends(get_db)):
	return get_summary_export(db)
