# launch_engine/config_loader.py

"""
Loads launcher configuration. A launch config is a JSON file given on the
command line; it is layered over ~/.teku-launcher/data/settings.json, which
holds machine-wide values such as the Docker network and shared-dir root.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple

APP_ROOT = Path.home() / ".teku-launcher"
DATA_DIR = APP_ROOT / "data"
LOG_DIR = APP_ROOT / "logs"
SHARED_DIR = APP_ROOT / "shared"
DEFAULT_SETTINGS_FILE = DATA_DIR / "settings.json"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "docker_network": "teku-launcher",
    "docker_subnet": "172.28.0.0/16",
    "shared_root": str(SHARED_DIR),
    "registry_file": str(DATA_DIR / "nodes.json"),
    "log_max_bytes": 5 * 1024 * 1024,
    "log_backup_count": 5,
}


def ensure_runtime_dirs() -> None:
    """Ensure ~/.teku-launcher data/log/shared directories exist."""
    for path in (DATA_DIR, LOG_DIR, SHARED_DIR):
        path.mkdir(parents=True, exist_ok=True)


ensure_runtime_dirs()


def resolve_user_path(path: str | Path) -> Path:
    """Expand ``~`` and anchor relative paths at the caller's working directory."""
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = Path.cwd() / candidate
    return candidate.resolve()


def read_json_object(path: Path) -> Dict[str, Any]:
    with open(path, "r") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def load_settings(defaults: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Machine-wide settings over ``defaults``; an unreadable file is reported and skipped."""
    settings = dict(defaults or {})
    if DEFAULT_SETTINGS_FILE.exists():
        try:
            settings.update(read_json_object(DEFAULT_SETTINGS_FILE))
        except (OSError, ValueError) as exc:
            print(f"⚠️ Ignoring unreadable {DEFAULT_SETTINGS_FILE}: {exc}")
    return settings


def load_node_config(
    config_path: str | None,
    defaults: Dict[str, Any] | None = None,
    include_settings: bool = True,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Returns ``(launch_config, settings)``. A launch config that cannot be read
    is fatal, unlike the settings file.
    """
    config = dict(defaults or {})
    if config_path:
        resolved = resolve_user_path(config_path)
        try:
            config.update(read_json_object(resolved))
        except (OSError, ValueError) as exc:
            raise RuntimeError(f"Failed to load launch config '{config_path}' ({resolved}): {exc}") from exc

    settings = load_settings(DEFAULT_SETTINGS) if include_settings else {}
    return config, settings


__all__ = [
    "APP_ROOT",
    "DATA_DIR",
    "LOG_DIR",
    "SHARED_DIR",
    "DEFAULT_SETTINGS",
    "ensure_runtime_dirs",
    "resolve_user_path",
    "load_settings",
    "load_node_config",
]
