"""Load env and YAML configuration."""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobcollector.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = Path(os.environ.get("JOBCOLLECTOR_DATA_DIR") or ROOT_DIR / "data")
ENV_PATH: Path = ROOT_DIR / ".env"

STORAGE_KEY = "jobcollector_v3_stable"

DEFAULT_SETTINGS: dict[str, Any] = {
    "llm": {
        "base_url": "https://api.groq.com/openai/v1",
        "model": "llama-3.3-70b-versatile",
        "fast_model": "llama-3.1-8b-instant",
        "vision_model": "meta-llama/llama-4-scout-17b-16e-instruct",
        "timeout": 60,
    },
    "fetch": {
        "timeout": 15,
        "max_page_chars": 6000,
    },
    "storage": {
        "key": STORAGE_KEY,
        "file": "storage.json",
    },
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_settings(path: Path | None = None) -> dict[str, Any]:
    """Defaults, overlaid with config/settings.yaml, overlaid with env vars."""
    path = path or SETTINGS_PATH
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                settings = _merge(settings, data)
            else:
                log.warning("Ignoring %s: top level is not a mapping", path.name)
        except yaml.YAMLError as exc:
            log.warning("Failed to parse %s (%s), using defaults", path.name, exc)

    llm = settings["llm"]
    llm["base_url"] = get_env("LLM_BASE_URL") or llm["base_url"]
    llm["model"] = get_env("LLM_MODEL") or llm["model"]
    llm["fast_model"] = get_env("LLM_FAST_MODEL") or llm["fast_model"]
    llm["vision_model"] = get_env("LLM_VISION_MODEL") or llm["vision_model"]
    return settings


def get_api_key() -> str:
    return get_env("LLM_API_KEY") or get_env("GROQ_API_KEY")


def storage_path(settings: dict[str, Any] | None = None) -> Path:
    settings = settings or load_settings()
    return DATA_DIR / settings["storage"]["file"]


def ensure_dirs() -> None:
    for d in (DATA_DIR, CONFIG_DIR):
        d.mkdir(parents=True, exist_ok=True)
