"""Load settings from config/settings.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobmatcher.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"


class ModelProvider(str, Enum):
    GROQ = "groq"
    OPENROUTER = "openrouter"


PROVIDER_KEY_ENV: dict[ModelProvider, str] = {
    ModelProvider.GROQ: "GROQ_API_KEY",
    ModelProvider.OPENROUTER: "OPENROUTER_API_KEY",
}

DEFAULT_MODELS: dict[ModelProvider, str] = {
    ModelProvider.GROQ: "moonshotai/kimi-k2-instruct-0905",
    ModelProvider.OPENROUTER: "moonshotai/kimi-k2",
}


@dataclass(frozen=True)
class Settings:
    model_provider: ModelProvider = ModelProvider.GROQ
    model_name: str = DEFAULT_MODELS[ModelProvider.GROQ]
    api_key: str = ""
    max_steps: int = 10
    max_tokens: int = 1024
    search_backend: str = "typesense"
    typesense_url: str = ""
    typesense_api_key: str = ""
    typesense_collection: str = "jobs"
    store_backend: str = "jsonfile"
    store_path: Path = DATA_DIR / "store.json"
    geo_radius_km: float = 80.0
    overfetch_factor: int = 3
    default_commute_minutes: int = 30
    jobs_file: Path | None = None


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        log.debug("No settings file at %s — using defaults and environment", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")
    return data


def _resolve(value: str | Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else (ROOT_DIR / path).resolve()


def load_settings(path: Path | None = None) -> Settings:
    """Merge YAML settings with environment overrides.

    Environment variables win over the file: ``JOBMATCHER_PROVIDER``,
    ``JOBMATCHER_MODEL``, ``TYPESENSE_URL``, ``TYPESENSE_API_KEY``,
    ``JOBMATCHER_STORE_PATH`` and the provider's API key variable.
    """
    data = _read_yaml(path or SETTINGS_PATH)
    model_cfg = data.get("model", {}) or {}
    search_cfg = data.get("search", {}) or {}
    store_cfg = data.get("store", {}) or {}

    provider_name = get_env("JOBMATCHER_PROVIDER") or model_cfg.get("provider", "groq")
    try:
        provider = ModelProvider(str(provider_name).lower())
    except ValueError:
        raise ValueError(
            f"Unknown model provider {provider_name!r}; expected one of "
            + ", ".join(p.value for p in ModelProvider)
        ) from None

    model_name = get_env("JOBMATCHER_MODEL") or model_cfg.get("name") or DEFAULT_MODELS[provider]
    api_key = get_env(PROVIDER_KEY_ENV[provider])
    if not api_key:
        log.warning("%s not set — model calls will fail", PROVIDER_KEY_ENV[provider])

    store_path = _resolve(get_env("JOBMATCHER_STORE_PATH") or store_cfg.get("path") or DATA_DIR / "store.json")

    default_commute = int(search_cfg.get("default_commute_minutes", 30))
    if default_commute not in (10, 30, 60):
        raise ValueError("search.default_commute_minutes must be 10, 30 or 60")

    jobs_file = get_env("JOBMATCHER_JOBS_FILE") or search_cfg.get("jobs_file")

    overfetch = int(search_cfg.get("overfetch_factor", 3))
    if overfetch < 1:
        raise ValueError("search.overfetch_factor must be >= 1")

    max_steps = int(model_cfg.get("max_steps", 10))
    if max_steps < 1:
        raise ValueError("model.max_steps must be >= 1")

    return Settings(
        model_provider=provider,
        model_name=model_name,
        api_key=api_key,
        max_steps=max_steps,
        max_tokens=int(model_cfg.get("max_tokens", 1024)),
        search_backend=search_cfg.get("backend", "typesense"),
        typesense_url=get_env("TYPESENSE_URL") or search_cfg.get("typesense_url", ""),
        typesense_api_key=get_env("TYPESENSE_API_KEY"),
        typesense_collection=search_cfg.get("collection", "jobs"),
        store_backend=store_cfg.get("backend", "jsonfile"),
        store_path=store_path,
        geo_radius_km=float(search_cfg.get("geo_radius_km", 80.0)),
        overfetch_factor=overfetch,
        default_commute_minutes=default_commute,
        jobs_file=_resolve(jobs_file) if jobs_file else None,
    )


def ensure_dirs() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
