from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr, model_validator
from pathlib import Path
import os
import logging

logger = logging.getLogger("foodrecipes.config")

# Module-level repo root to avoid Pydantic private attr behavior on class underscores
REPO_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # Use environment variables with prefix FOODRECIPES_ and load from repo-local .env file if present.
    # Resolve .env relative to the repo root so starting from any CWD still loads settings.
    model_config = SettingsConfigDict(
        env_prefix="FOODRECIPES_",
        env_file=str(REPO_ROOT / "environments" / "sample.env"),
        env_file_encoding="utf-8",
        extra="forbid",  # surface unknown env vars as errors
    )

    ENV: str = "dev"  # dev|test|prod
    LOG_LEVEL: str = "info"

    # Recipe API
    BASE_URL: str = "https://recipesapi.herokuapp.com"
    API_KEY: SecretStr | None = None
    USER_AGENT: str = "foodrecipes-client/0.1"

    # Every request gets the same deadline; no per-request override
    NETWORK_TIMEOUT_MS: int = Field(
        default=3000, description="Deadline applied to every search and lookup request"
    )
    CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Worker pool for blocking network calls
    EXECUTOR_MAX_WORKERS: int = Field(default=3, description="Threads serving network calls")

    @model_validator(mode="after")
    def _validate_limits(self) -> "Settings":
        if self.NETWORK_TIMEOUT_MS <= 0:
            raise ValueError("NETWORK_TIMEOUT_MS must be positive")
        if self.EXECUTOR_MAX_WORKERS < 1:
            raise ValueError("EXECUTOR_MAX_WORKERS must be at least 1")
        if self.CONNECT_TIMEOUT_SECONDS <= 0:
            raise ValueError("CONNECT_TIMEOUT_SECONDS must be positive")
        return self

    @property
    def network_timeout_seconds(self) -> float:
        return self.NETWORK_TIMEOUT_MS / 1000.0

    @property
    def api_key_value(self) -> str:
        return self.API_KEY.get_secret_value() if self.API_KEY else ""


def _resolve_env_files_from_override(repo_root: Path) -> str | tuple[str, ...] | None:
    """Resolve optional override for dotenv file(s) using FOODRECIPES_ENV_FILE.

    Supports absolute or relative paths (relative to repo root) and
    comma-separated list for multiple env files (later items override earlier).
    """
    override = os.getenv("FOODRECIPES_ENV_FILE")
    if not override:
        return None

    def to_abs(p: str) -> str:
        path = Path(p)
        if not path.is_absolute():
            path = repo_root / p
        return str(path)

    parts = [p.strip() for p in override.split(",") if p.strip()]
    if not parts:
        return None
    if len(parts) == 1:
        return to_abs(parts[0])
    return tuple(to_abs(p) for p in parts)


def load_settings() -> Settings:
    """Build settings from the committed env file plus any local overlays."""
    override = _resolve_env_files_from_override(REPO_ROOT)
    if override:

        class _RuntimeSettings(Settings):
            model_config = SettingsConfigDict(
                env_prefix="FOODRECIPES_",
                env_file=override,  # type: ignore[arg-type]
                env_file_encoding="utf-8",
                extra="forbid",
            )

        return _RuntimeSettings()

    # Order: default committed env -> overlays (later overrides earlier)
    default_env = REPO_ROOT / "environments" / "sample.env"
    overlay_candidates = [
        REPO_ROOT / "environments" / "development.local.env",
        REPO_ROOT / "environments" / "local.env",
    ]
    overlays: list[str] = [str(p) for p in overlay_candidates if p.exists()]
    if overlays:

        class _AutoOverlaySettings(Settings):
            model_config = SettingsConfigDict(
                env_prefix="FOODRECIPES_",
                env_file=(str(default_env), *overlays),  # type: ignore[arg-type]
                env_file_encoding="utf-8",
                extra="forbid",
            )

        return _AutoOverlaySettings()
    return Settings()


settings: Settings = load_settings()


def log_settings(current: Settings | None = None) -> None:
    """Log settings at startup. SecretStr fields are automatically masked."""
    logger.info("Configuration loaded: %s", current or settings)
