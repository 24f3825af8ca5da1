from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from polyci.exceptions import ConfigurationError

BUILD_MODES = ("release", "debug")
LOG_LEVELS = ("DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")
TRUTHY = ("true", "1", "yes", "on")


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables.

    Variable names match the ones CI pipelines already export (``CI``,
    ``COVERAGE``, ``GITHUB_REF``...), so no prefix is applied. Command-line
    flags are passed as init kwargs and take precedence over the
    environment. A CI flag counts as set only for ``true``, ``1``, ``yes``
    or ``on``; any other value (``CI=woodpecker``) reads as false.

    No ``.env`` file is read: the working directory is the target
    project, and its ``.env`` belongs to that project.

    The ``detected_*`` fields carry a classification exported by an earlier
    ``polyci-detect --format env`` in the same shell; dispatchers use them
    to skip re-detection.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    # Target project: defaults to the current working directory.
    project_root: Optional[Path] = None

    # Dispatcher flags
    ci: bool = False
    coverage: bool = False
    verbose: bool = False
    fix: bool = False
    build_mode: str = "release"

    # Mirror
    source_remote: str = "origin"
    mirror_remote: str = "gitlab"
    mirror_url: str = ""
    dry_run: bool = False

    # Push context supplied by the CI platform (single-ref mirror sync).
    github_ref: str = ""
    github_sha: str = ""

    # Classification exported by a previous detection run.
    detected_languages: str = ""
    primary_language: str = ""
    detected_package_managers: str = ""
    detected_test_frameworks: str = ""
    detected_build_systems: str = ""

    # Logging
    log_level: str = Field(default="INFO", validation_alias="POLYCI_LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="POLYCI_LOG_FORMAT")

    @field_validator("ci", "coverage", "verbose", "fix", "dry_run", mode="before")
    @classmethod
    def parse_flag(cls, v) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in TRUTHY

    @field_validator("build_mode", mode="before")
    @classmethod
    def normalise_build_mode(cls, v: str) -> str:
        mode = str(v).strip().lower()
        if mode not in BUILD_MODES:
            raise ValueError(f"BUILD_MODE must be one of: {', '.join(BUILD_MODES)}")
        return mode

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"POLYCI_LOG_LEVEL must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def normalise_log_format(cls, v: str) -> str:
        fmt = str(v).strip().lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"POLYCI_LOG_FORMAT must be one of: {', '.join(LOG_FORMATS)}")
        return fmt

    @property
    def root(self) -> Path:
        """Absolute project root."""
        return (self.project_root or Path.cwd()).expanduser().resolve()

    @property
    def is_release(self) -> bool:
        return self.build_mode == "release"


def get_settings(**overrides) -> Settings:
    """Build Settings from the environment plus explicit overrides.

    Overrides whose value is None are ignored so unset CLI flags fall
    through to the environment.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
