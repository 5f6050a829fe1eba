from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from recipe_stats.model import FilterConfig


class PathsConfig(BaseModel):
    logs_dir: Path = Field(default=Path("logs"))
    reports_dir: Path = Field(default=Path("reports"))


class FilterSettings(BaseModel):
    # Postcode + Zeitfenster für count_per_postcode_and_time
    postcode: str = Field(default="10120")
    from_hour: int = Field(default=10)
    to_hour: int = Field(default=3)

    # Teilstrings für match_by_name (Groß-/Kleinschreibung egal)
    keywords: List[str] = Field(default_factory=lambda: ["Potato", "Veggie", "Mushroom"])

    def to_filter_config(self) -> FilterConfig:
        return FilterConfig.build(
            target_postcode=self.postcode,
            from_hour=self.from_hour,
            to_hour=self.to_hour,
            keywords=self.keywords,
        )


class Settings(BaseModel):
    """Application settings.

    Input:
    - input_path is the JSON array of delivery records (optional here, the
      CLI may pass it explicitly).

    Output:
    - include_total adds total_json_objects to the rendered report.
    - strict turns malformed delivery strings into a fatal error.
    """

    input_path: Optional[Path] = Field(default=None)

    filter: FilterSettings = Field(default_factory=FilterSettings)

    include_total: bool = Field(default=False)
    strict: bool = Field(default=False)

    paths: PathsConfig = Field(default_factory=PathsConfig)


def load_settings(config_path: Optional[Path]) -> Settings:
    """Load settings from .env + optional YAML.

    Precedence:
      1) defaults
      2) .env / environment (RECIPE_STATS_*)
      3) YAML file (if provided)

    Only the project's local `.env` is loaded so runs stay reproducible.
    """

    load_dotenv(dotenv_path=Path(".env"), override=False)

    base = Settings()
    merged: Dict[str, Any] = base.model_dump(mode="python")

    env_input = _getenv("RECIPE_STATS_INPUT")
    env_postcode = _getenv("RECIPE_STATS_POSTCODE")
    env_from_hour = _getenv("RECIPE_STATS_FROM_HOUR")
    env_to_hour = _getenv("RECIPE_STATS_TO_HOUR")
    env_keywords = _getenv("RECIPE_STATS_KEYWORDS")

    if env_input is not None:
        merged["input_path"] = env_input
    if env_postcode is not None:
        merged["filter"]["postcode"] = env_postcode
    if env_from_hour is not None:
        merged["filter"]["from_hour"] = env_from_hour
    if env_to_hour is not None:
        merged["filter"]["to_hour"] = env_to_hour
    if env_keywords is not None:
        merged["filter"]["keywords"] = split_keywords(env_keywords)

    if config_path is not None:
        cfg = _load_yaml(config_path)
        merged = _deep_merge(merged, cfg)

    try:
        # pydantic converts paths and numeric strings
        return Settings.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def split_keywords(raw: str) -> List[str]:
    return [k.strip() for k in raw.split(",") if k.strip()]


def _getenv(key: str) -> Optional[str]:
    import os

    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(str(path))
    raw = path.read_text(encoding="utf-8")
    parsed = yaml.safe_load(raw) or {}
    if not isinstance(parsed, dict):
        raise ValueError("YAML config must be a mapping/object at the top level")
    return parsed


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out
