from __future__ import annotations

import copy
import json
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from PIL import ImageColor

_RESOURCE_PACKAGE = "listingstamp.templates.resources"

DEFAULT_LAYOUT: dict[str, Any] = {
    "palette": {
        "background": "#ffffff",
        "primary": "#0b1f3a",
        "text": "#ffffff",
        "muted": "#dddddd",
        "caption": "#cbd5e1",
        "separator": "#ffffff",
        "ring": "#ffffff",
        "shadow": "#000000",
    },
    "text_shadow": True,
}


def safe_color(value: Any, fallback: str) -> str:
    text = str(value or "").strip()
    if not text:
        return fallback
    try:
        ImageColor.getrgb(text)
    except ValueError:
        return fallback
    return text


def list_builtin_layouts() -> list[str]:
    files = resources.files(_RESOURCE_PACKAGE)
    names = []
    for item in files.iterdir():
        if item.name.endswith((".yaml", ".yml", ".json")):
            names.append(Path(item.name).stem)
    return sorted(set(names))


def _parse_text(text: str, suffix: str, origin: str) -> dict[str, Any]:
    if suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"layout file is not a dict: {origin}")
    return data


def _load_file(path: Path) -> dict[str, Any]:
    return _parse_text(path.read_text(encoding="utf-8"), path.suffix.lower(), str(path))


def _load_builtin(name: str) -> dict[str, Any]:
    pkg = resources.files(_RESOURCE_PACKAGE)
    for suffix in (".yaml", ".yml", ".json"):
        candidate = pkg / f"{name}{suffix}"
        if candidate.is_file():
            return _parse_text(candidate.read_text(encoding="utf-8"), suffix, f"{name}{suffix}")
    raise FileNotFoundError(f"built-in layout not found: {name}")


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _normalize_value(key: str, value: Any, default: Any) -> Any:
    if isinstance(value, dict):
        nested_default = default if isinstance(default, dict) else {}
        return {k: _normalize_value(str(k), v, nested_default.get(k)) for k, v in value.items()}
    if key == "color" or key.endswith("_color"):
        fallback = default if isinstance(default, str) else "#000000"
        return safe_color(value, fallback)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _normalize_palette(palette: Any) -> dict[str, str]:
    defaults = DEFAULT_LAYOUT["palette"]
    entries = palette if isinstance(palette, dict) else {}
    normalized = dict(defaults)
    for name, value in entries.items():
        normalized[str(name)] = safe_color(value, defaults.get(str(name), "#000000"))
    return normalized


def normalize_layout_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Merge a raw layout over the shared defaults, coercing numbers and colors.

    Only entries of the top-level ``palette`` section are colors by name; in
    every other section a key is a color when it is ``color`` or ends in ``_color``.
    """
    merged = _deep_merge(DEFAULT_LAYOUT, data)
    normalized = {
        str(k): _normalize_value(str(k), v, DEFAULT_LAYOUT.get(k))
        for k, v in merged.items()
        if k != "palette"
    }
    normalized["palette"] = _normalize_palette(merged.get("palette"))
    return normalized


def load_layout(template_id: str, override_dir: Path | None = None) -> dict[str, Any]:
    """Layout constants for a template.

    A ``<template_id>.yaml`` in ``override_dir`` is merged over the built-in file.
    """
    raw = _load_builtin(template_id)
    if override_dir is not None:
        for suffix in (".yaml", ".yml", ".json"):
            candidate = Path(override_dir) / f"{template_id}{suffix}"
            if candidate.is_file():
                raw = _deep_merge(raw, _load_file(candidate))
                break
    return normalize_layout_dict(raw)
