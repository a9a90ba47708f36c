"""Shared dependency providers and injectable backend application dependencies."""

from __future__ import annotations

import secrets
from collections.abc import Callable, Generator

from fastapi import Header
from sqlalchemy.orm import Session

from config import get_settings
from database import SessionLocal
from database import get_db as database_get_db
from services.scraper_service import Scraper
from services.scraper_service import get_scraper as build_scraper


class AuthorizationError(Exception):
	"""Raised when the scheduled-task bearer secret is missing or does not match."""


def get_db() -> Generator[Session, None, None]:
	"""Expose database session dependency for FastAPI route handlers."""
	yield from database_get_db()


def get_session_factory() -> Callable[[], Session]:
	"""Expose the session factory the refresh coordinator opens its own transactions with."""
	return SessionLocal


def get_scraper() -> Scraper:
	return build_scraper()


def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
	"""Reject the request unless it carries ``Authorization: Bearer <CRON_SECRET>``."""
	secret = get_settings().cron_secret
	if not secret or not authorization:
		raise AuthorizationError("Unauthorized")
	expected = f"Bearer {secret}"
	if not secrets.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8")):
		raise AuthorizationError("Unauthorized")
