"""
Tactics Trainer - Configuration

Loads settings from environment variables (prefix TACTICS_) and an
optional .env file, with Pydantic validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


def _repo_root() -> Path:
    # tactics/ is at <repo>/tactics
    return Path(__file__).resolve().parents[1]


DEFAULT_CATALOG_PATH = _repo_root() / "data" / "problems.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ─── Catalog ───
    # Comma-separated paths or http(s) URLs, tried in order
    catalog_sources: str = str(DEFAULT_CATALOG_PATH)
    fetch_timeout: float = 10.0
    verify_solutions: bool = True
    random_seed: Optional[int] = None

    # ─── Cache ───
    cache_dir: str = ""
    cache_max_age_hours: int = 24

    # ─── Scoring ───
    score_policy: str = "flat"

    # ─── App ───
    log_level: str = "INFO"

    @property
    def catalog_source_list(self) -> list[str]:
        return [s.strip() for s in self.catalog_sources.split(",") if s.strip()]

    @property
    def resolved_cache_dir(self) -> Path:
        if self.cache_dir.strip():
            return Path(self.cache_dir.strip())
        return _repo_root() / "data" / "catalog_cache"

    model_config = {
        "env_prefix": "TACTICS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
