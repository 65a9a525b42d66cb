"""
Configuration Module - Settings for indexing runs.
==================================================

Values come from ``config/settings.yaml`` at the project root. Three
top-level environment variables (read from the process or a ``.env``
file) take precedence:

    LOG_LEVEL        logging.level
    NOVAXFER_STORE   store.path
    MAX_WORKERS      indexing.max_workers

Usage:
    from novaxfer.shared.config import get_settings

    settings = get_settings()
    settings.fetch.timeout
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _find_project_root() -> Path:
    """Nearest ancestor of this file holding pyproject.toml, else the working directory."""
    here = Path(__file__).resolve()
    for candidate in here.parents:
        if (candidate / "pyproject.toml").exists():
            return candidate
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Sections
# ─────────────────────────────────────────────────────────────────────────────


class FetchConfig(BaseModel):
    """HTTP behaviour of the Fetcher."""

    timeout: int = 30
    max_retries: int = 3
    retry_min_wait: int = 1
    retry_max_wait: int = 10
    user_agent: str = "NovaXfer/0.1.0"
    # Raw payloads are cached under paths.raw_dir, for offline development
    cache_enabled: bool = False
    cache_expiry_days: int = 1


class IndexingConfig(BaseModel):
    max_workers: int = 8
    # Used by indexers that don't declare their own generic suffix
    default_generic_suffix: str = "XX"

    @field_validator("max_workers")
    @classmethod
    def at_least_one_worker(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class PdfConfig(BaseModel):
    """pdfplumber table-finder settings."""

    vertical_strategy: str = "text"
    horizontal_strategy: str = "text"
    snap_tolerance: float = 3
    intersection_tolerance: float = 3

    def table_settings(self) -> dict[str, Any]:
        return self.model_dump()


class StoreConfig(BaseModel):
    path: str = "data/novaxfer.sqlite3"


class ResolvedPaths(BaseModel):
    data_dir: Path
    raw_dir: Path
    reports_dir: Path


class PathsConfig(BaseModel):
    """Data directories, relative to the project root."""

    data_dir: str = "data"
    raw_dir: str = "data/raw"
    reports_dir: str = "data/reports"

    def resolve(self, base_path: Path) -> ResolvedPaths:
        return ResolvedPaths(
            data_dir=base_path / self.data_dir,
            raw_dir=base_path / self.raw_dir,
            reports_dir=base_path / self.reports_dir,
        )


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    # Empty means console only
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    All configuration for a run.

    The YAML sections are passed in as keyword arguments; the environment
    overrides are separate fields so that ``get_effective_*`` can tell an
    explicit override from a YAML default.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")
    store_path: Optional[str] = Field(default=None, validation_alias="NOVAXFER_STORE")
    max_workers: Optional[int] = Field(default=None, validation_alias="MAX_WORKERS")

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    pdf: PdfConfig = Field(default_factory=PdfConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def project_root(self) -> Path:
        return PROJECT_ROOT

    @property
    def resolved_paths(self) -> ResolvedPaths:
        return self.paths.resolve(PROJECT_ROOT)

    def get_effective_store_path(self) -> Path:
        """SQLite file for the equivalency store, absolute."""
        path = Path(self.store_path or self.store.path)
        return path if path.is_absolute() else PROJECT_ROOT / path

    def get_effective_max_workers(self) -> int:
        if self.max_workers is not None and self.max_workers > 0:
            return self.max_workers
        return self.indexing.max_workers

    def get_effective_log_level(self) -> str:
        return (self.log_level or self.logging.level).upper()


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Build Settings from a YAML file (default: config/settings.yaml) plus the environment."""
    config_path = config_path or DEFAULT_CONFIG_FILE

    sections: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            sections = yaml.safe_load(f) or {}

    return Settings(**sections)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return load_settings()


def reload_settings() -> Settings:
    """Discard cached settings and load them again (after changing the environment)."""
    get_settings.cache_clear()
    return get_settings()
