import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
	# Accept a direct URL (supports either DATABASE_URL or database_url env vars)
	database_url: str | None = None

	# Individual parts, used only when no direct URL is configured
	DB_DRIVER: str = "postgresql"
	DB_HOST: str = "localhost"
	DB_USER: str = "worklog"
	DB_PASSWORD: str = "worklog"
	DB_NAME: str = "worklog"
	DB_PORT: int = 5432

	SECRET_KEY: str = "secret"
	ALGORITHM: str = "HS256"
	ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
	DEFAULT_SHIFT: str = "Matutino"
	CORS_ORIGIN: str = "*"

	# Backend bootstrap
	INIT_DB_ON_STARTUP: bool = True
	SEED_DEFAULT_USERS: bool = True
	SEED_TECHNICIANS_FILE: str | None = None

	# Observability / Telemetry flags
	ENABLE_REQUEST_LOGGING: bool = True
	ENABLE_OUTBOUND_LOGGING: bool = True
	LOG_SAMPLE_RATE: float = 1.0
	LOG_LEVEL: str = "INFO"

	# Device side: remote job source and embedded store
	REMOTE_SOURCE: Literal["rest", "sheets"] = "rest"
	API_BASE_URL: str = "http://localhost:4000/api"
	GOOGLE_SHEETS_URL: str | None = None
	REMOTE_TIMEOUT_SECONDS: float = 30.0
	LOCAL_DATABASE_URL: str = "sqlite:///worklog_local.db"

	# Prefer explicit database_url if provided; otherwise assemble from parts
	@property
	def DATABASE_URL(self) -> str:
		if self.database_url and self.database_url.strip() and self.database_url.strip() != "://:@:/":
			return self.database_url.strip()
		explicit_url = os.getenv("DATABASE_URL")
		if explicit_url and explicit_url.strip() and explicit_url.strip() != "://:@:/":
			return explicit_url.strip()
		return f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

	@property
	def cors_origins(self) -> list[str]:
		if self.CORS_ORIGIN.strip() == "*":
			return ["*"]
		return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]

	model_config = SettingsConfigDict(
		env_file=".env",
		extra="ignore",
		case_sensitive=False,
	)

settings = Settings()
