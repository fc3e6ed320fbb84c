from functools import cached_property
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
PACKAGE_DIR = Path(__file__).resolve().parent

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings with validation.

    Values come from VIEW_TREE_* environment variables or the .env file.

    Uses Pydantic v2 API:
    - model_config with SettingsConfigDict
    - @field_validator decorator
    - @cached_property for derived values
    """

    # Rendering
    template_dir: Path = Field(default=PACKAGE_DIR / "templates", description="Root directory for templates")
    template_extension: str = Field(default=".html", description="Extension appended to extensionless templates")
    default_content_type: str = Field(default="text/html", description="Content type of new root views")
    render_timeout: float = Field(gt=0, default=10.0, description="Seconds to wait for a view tree to finish")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path | None = Field(default=None, description="Directory for JSON logs; console only when unset")

    # Demo server
    api_host: str = Field(min_length=1, default="127.0.0.1", description="Server host")
    api_port: int = Field(ge=1, le=65535, default=8000, description="Server port")

    model_config = SettingsConfigDict(
        env_prefix="VIEW_TREE_",
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @cached_property
    def template_dir_exists(self) -> bool:
        """Whether the configured template directory exists.

        A missing directory is not fatal, since renderers for other engines
        may not need it.
        """
        return self.template_dir.is_dir()

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise log level and ensure it is a known level name."""
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator("default_content_type", mode="after")
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        """Ensure the content type looks like type/subtype."""
        v = v.strip().lower()
        major, _, minor = v.partition("/")
        if not major or not minor:
            raise ValueError("default_content_type must be of the form 'type/subtype'")
        return v

    @field_validator("template_extension", mode="after")
    @classmethod
    def validate_template_extension(cls, v: str) -> str:
        """Ensure a non-empty extension starts with a dot."""
        v = v.strip()
        if v and not v.startswith("."):
            v = f".{v}"
        return v


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance for dependency injection.

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
