"""
Converter Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ConverterSettings(BaseSettings):
    """
    HTML to PDF converter configuration with validation.

    All settings can be overridden via environment variables (or a .env file).
    Validation happens at startup to fail fast on misconfiguration.
    """

    # === Server ===
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )
    host: str = Field(default="0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(default=3000, ge=1, le=65535, description="HTTP port")
    log_level: str = Field(default="INFO", description="Root log level")

    # === Filesystem ===
    base_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory holding uploads/, temp/ and output/"
    )
    max_upload_bytes: int = Field(
        default=50 * 1024 * 1024,
        ge=1024,
        description="Maximum accepted size of an uploaded HTML file"
    )

    # === Browser ===
    playwright_headless: bool = Field(default=True, description="Run Chromium headless")
    chromium_executable_path: Optional[str] = Field(
        default=None,
        description="Explicit Chromium binary (falls back to system paths in production)"
    )
    accept_language: str = Field(
        default="hi,en-US;q=0.9,en;q=0.8",
        description="Accept-Language header sent by every conversion tab"
    )

    # === Timeouts (milliseconds) ===
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=1000,
        description="Timeout for loading the staged document (fatal)"
    )
    url_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        description="Timeout for fetching a remote URL before snapshotting (fatal)"
    )
    font_timeout_ms: int = Field(
        default=10000,
        ge=0,
        description="Best-effort wait for document.fonts.ready"
    )
    selector_timeout_ms: int = Field(
        default=10000,
        ge=0,
        description="Best-effort wait for .page containers in slide formats"
    )
    font_settle_ms: int = Field(
        default=500,
        ge=0,
        description="Extra delay after fonts report ready"
    )

    # === CORS ===
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @property
    def uploads_dir(self) -> Path:
        return self.base_dir / "uploads"

    @property
    def temp_dir(self) -> Path:
        return self.base_dir / "temp"

    @property
    def output_dir(self) -> Path:
        return self.base_dir / "output"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for production.

        Returns list of warning/error messages.
        """
        issues = []

        if self.is_production:
            if "*" in self.cors_origins_list:
                issues.append("WARNING: CORS_ORIGINS allows every origin")
            if not self.playwright_headless:
                issues.append("WARNING: Chromium is not running headless")

        if self.chromium_executable_path and not Path(self.chromium_executable_path).exists():
            issues.append(
                f"CRITICAL: CHROMIUM_EXECUTABLE_PATH does not exist: {self.chromium_executable_path}"
            )

        return issues

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # NAVIGATION_TIMEOUT_MS = navigation_timeout_ms
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> ConverterSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    Use this function to access configuration throughout the app.
    """
    return ConverterSettings()


def validate_config_on_startup(settings: Optional[ConverterSettings] = None) -> ConverterSettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    Logs warnings for non-critical issues.
    """
    try:
        settings = settings or get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_production_config():
        if issue.startswith("CRITICAL"):
            raise ValueError(issue)
        logger.warning(issue)

    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  base_dir={settings.base_dir}")
    logger.info(f"  headless={settings.playwright_headless}")
    logger.info(f"  chromium_executable_path={settings.chromium_executable_path or '(bundled)'}")
    logger.info(
        f"  timeouts: navigation={settings.navigation_timeout_ms}ms "
        f"url={settings.url_timeout_ms}ms fonts={settings.font_timeout_ms}ms"
    )

    return settings
