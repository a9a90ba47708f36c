"""Scheduled refresh trigger, guarded by the cron bearer secret."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dependencies import get_scraper, get_session_factory, require_cron_secret
from services.refresh_service import run_refresh
from services.scraper_service import Scraper

router = APIRouter(tags=["refresh"])


@router.get("/scheduled-task", summary="Replace stored demand data with a fresh scrape")
def scheduled_task(
	_: None = Depends(require_cron_secret),
	session_factory: Callable[[], Session] = Depends(get_session_factory),
	scraper: Scraper = Depends(get_scraper),
) -> dict[str, object]:
	"""Run a refresh; failures surface as RefreshError and map to 409 or 500."""
	return asdict(run_refresh(session_factory=session_factory, scraper=scraper))
