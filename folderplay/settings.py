"""Configuration loading utilities for folderplay."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List

import yaml


ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "app_config.yaml"
DEFAULT_VIDEO_EXTENSIONS = (".mp4", ".mov", ".m4v", ".3gp")


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values loaded from YAML."""

    log_directory: Path
    preferences_path: Path
    vlc_options: List[str]
    video_extensions: FrozenSet[str]
    progress_interval: float
    scan_workers: int
    api_host: str
    api_port: int


def _ensure_path(path_value: Any) -> Path:
    """Return a resolved Path from a YAML scalar."""
    path = Path(str(path_value)).expanduser()
    if not path.is_absolute():
        path = (ROOT_DIR / path).resolve()
    return path


def _normalise_extension(value: Any) -> str:
    ext = str(value).strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def config_from_mapping(data: Dict[str, Any]) -> AppConfig:
    """Build an AppConfig from parsed YAML, applying defaults."""
    extensions = data.get("video_extensions") or list(DEFAULT_VIDEO_EXTENSIONS)
    return AppConfig(
        log_directory=_ensure_path(data.get("log_directory", "logs")),
        preferences_path=_ensure_path(data.get("preferences_path", "data/preferences.json")),
        vlc_options=[str(arg) for arg in data.get("vlc_options", ["--quiet"])],
        video_extensions=frozenset(_normalise_extension(ext) for ext in extensions),
        progress_interval=max(0.05, float(data.get("progress_interval", 0.1))),
        scan_workers=max(1, int(data.get("scan_workers", 2))),
        api_host=str(data.get("api_host", "127.0.0.1")),
        api_port=int(data.get("api_port", 8000)),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the application configuration from YAML."""
    path = config_path or Path(os.environ.get("FOLDERPLAY_CONFIG_PATH", DEFAULT_CONFIG_PATH))
    return config_from_mapping(_load_yaml(path))
