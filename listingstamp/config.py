from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG: dict[str, Any] = {
    "template": "navy_header",
    "export_resolution": 1080,
    "preview_scale": 0.5,
    "debounce_ms": 350,
    "asset_timeout_s": 10.0,
    "output_format": "png",
    "quality": 92,
    "proxy_base": None,
    "font_path": None,
    "bold_font_path": None,
    "name_template": "{template}_{street}_{status}.{ext}",
    "layout_dir": None,
    "default_logos": {
        "primary_logo": None,
        "secondary_logo": None,
    },
}


def get_user_data_dir() -> Path:
    """Per-user writable data directory."""
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "ListingStamp"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "ListingStamp"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "ListingStamp"
    return Path.home() / ".config" / "ListingStamp"


def get_config_path() -> Path:
    override = os.environ.get("LISTINGSTAMP_CONFIG")
    if override:
        return Path(override)
    return get_user_data_dir() / "Config" / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _clamp_config(cfg: dict[str, Any]) -> dict[str, Any]:
    try:
        cfg["export_resolution"] = max(16, int(cfg.get("export_resolution") or 1080))
    except (TypeError, ValueError):
        cfg["export_resolution"] = DEFAULT_CONFIG["export_resolution"]
    try:
        cfg["preview_scale"] = min(1.0, max(0.05, float(cfg.get("preview_scale") or 0.5)))
    except (TypeError, ValueError):
        cfg["preview_scale"] = DEFAULT_CONFIG["preview_scale"]
    try:
        cfg["debounce_ms"] = max(0, int(cfg.get("debounce_ms") or 0))
    except (TypeError, ValueError):
        cfg["debounce_ms"] = DEFAULT_CONFIG["debounce_ms"]
    try:
        cfg["asset_timeout_s"] = max(0.1, float(cfg.get("asset_timeout_s") or 10.0))
    except (TypeError, ValueError):
        cfg["asset_timeout_s"] = DEFAULT_CONFIG["asset_timeout_s"]
    cfg["output_format"] = "jpeg" if str(cfg.get("output_format") or "").lower() in {"jpg", "jpeg"} else "png"
    return cfg


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return _clamp_config(copy.deepcopy(DEFAULT_CONFIG))

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return _clamp_config(_deep_merge(DEFAULT_CONFIG, loaded))


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg_path.write_text(yaml.safe_dump(cfg, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path
