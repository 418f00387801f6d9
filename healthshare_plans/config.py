from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .catalog import BaseCatalogSource, FileCatalogSource, SupabaseCatalogSource
from .models import RecommendationConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Service configuration, read from the environment."""

    catalog_path: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_table: str = "plans"
    log_level: str = "INFO"
    strict_ingestion: bool = False
    weights_path: Optional[str] = None
    session_cookie: str = "questionnaire_session"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            catalog_path=os.getenv("HEALTHSHARE_CATALOG_PATH") or None,
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_key=os.getenv("SUPABASE_ANON_KEY") or None,
            supabase_table=os.getenv("SUPABASE_PLANS_TABLE", "plans"),
            log_level=os.getenv("HEALTHSHARE_LOG_LEVEL", "INFO").upper(),
            strict_ingestion=_env_flag("HEALTHSHARE_STRICT_INGESTION"),
            weights_path=os.getenv("HEALTHSHARE_WEIGHTS_PATH") or None,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_catalog_source(settings: Settings) -> BaseCatalogSource:
    """Supabase when credentials are set, else a catalog file (bundled by default)."""
    if settings.supabase_url and settings.supabase_key:
        return SupabaseCatalogSource(
            url=settings.supabase_url,
            api_key=settings.supabase_key,
            table=settings.supabase_table,
        )
    return FileCatalogSource(settings.catalog_path)


def load_recommendation_config(path: Optional[str | os.PathLike] = None) -> RecommendationConfig:
    """Read scoring weights from YAML; keys not present keep their defaults."""
    if path is None:
        return RecommendationConfig()
    with Path(path).open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Weights file {path} must be a YAML mapping.")
    known = {item.name for item in dataclasses.fields(RecommendationConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown recommendation settings in {path}: {', '.join(unknown)}")
    defaults = RecommendationConfig()
    if "spend_unshared_multipliers" in data:
        data["spend_unshared_multipliers"] = {
            **defaults.spend_unshared_multipliers,
            **data["spend_unshared_multipliers"],
        }
    return RecommendationConfig(**data)
