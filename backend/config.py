"""Centralized backend configuration and environment-driven settings definitions."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	"""Application settings loaded from environment variables."""

	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	DATABASE_URL: str = Field(default="sqlite:///./skill_demand.db")
	DATABASE_TIMEOUT_SECONDS: float = Field(default=30.0)
	CRON_SECRET: SecretStr | None = Field(default=None)
	ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(default="production")

	REFRESH_STRATEGY: Literal["staged", "in_place"] = Field(default="staged")
	REFRESH_LOCK_TIMEOUT_SECONDS: float = Field(default=0.0)
	SCRAPER_SEED_PATH: str = Field(default="seeds/skill_demand.csv")

	app_name: str = Field(default="Job Skills API")
	app_version: str = Field(default="1.0.0")
	app_description: str = Field(
		default=(
			"Read-mostly API over regional skill demand counts with aggregated map, "
			"trend, top-skill and export views plus a scheduled data refresh."
		)
	)

	cors_origins: str = Field(
		default="https://skill-gap-ph.vercel.app,http://localhost:3000,http://localhost:5173"
	)

	log_level: str = Field(default="INFO")
	top_skills_default_limit: int = Field(default=10)
	top_skills_max_limit: int = Field(default=1000)

	@field_validator("DATABASE_TIMEOUT_SECONDS")
	@classmethod
	def validate_database_timeout(cls, value: float) -> float:
		"""Validate store call timeout bounds in seconds."""
		if value < 1 or value > 300:
			raise ValueError("DATABASE_TIMEOUT_SECONDS must be between 1 and 300.")
		return value

	@field_validator("REFRESH_LOCK_TIMEOUT_SECONDS")
	@classmethod
	def validate_refresh_lock_timeout(cls, value: float) -> float:
		if value < 0:
			raise ValueError("REFRESH_LOCK_TIMEOUT_SECONDS cannot be negative.")
		return value

	@field_validator("top_skills_default_limit")
	@classmethod
	def validate_default_limit(cls, value: int) -> int:
		if value < 1:
			raise ValueError("top_skills_default_limit must be a positive integer.")
		return value

	@field_validator("top_skills_max_limit")
	@classmethod
	def validate_max_limit(cls, value: int) -> int:
		if value < 1 or value > 100000:
			raise ValueError("top_skills_max_limit must be between 1 and 100000.")
		return value

	@property
	def database_url(self) -> str:
		"""Backward-compatible lowercase accessor for database URL."""
		return self.DATABASE_URL

	@property
	def database_timeout_seconds(self) -> float:
		return self.DATABASE_TIMEOUT_SECONDS

	@property
	def cron_secret(self) -> str | None:
		"""Return the scheduled-task bearer secret, or None when unset."""
		if self.CRON_SECRET is None:
			return None
		return self.CRON_SECRET.get_secret_value() or None

	@property
	def environment(self) -> str:
		"""Backward-compatible lowercase accessor for deployment environment."""
		return self.ENVIRONMENT

	@property
	def refresh_strategy(self) -> str:
		return self.REFRESH_STRATEGY

	@property
	def refresh_lock_timeout_seconds(self) -> float:
		return self.REFRESH_LOCK_TIMEOUT_SECONDS

	@property
	def scraper_seed_path(self) -> str:
		return self.SCRAPER_SEED_PATH

	@property
	def allowed_cors_origins(self) -> List[str]:
		"""Return normalized CORS origins list."""
		raw_origins = [item.strip() for item in self.cors_origins.split(",")]
		return [origin for origin in raw_origins if origin]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
	"""Return cached settings instance for dependency injection."""
	return Settings()
