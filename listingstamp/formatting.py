from __future__ import annotations

import re
from typing import Any

from listingstamp.constants import (
    DEFAULT_STATUS_COLOR,
    REALTOR_SUFFIX,
    STATUS_COLORS,
    STATUS_COMING_SOON,
    STATUS_FOR_LEASE,
    STATUS_FOR_SALE,
    STATUS_JUST_LISTED,
    STATUS_JUST_SOLD,
    STATUS_LABELS,
    STATUS_OPEN_HOUSE,
    STATUS_PRICE_IMPROVEMENT,
    STATUS_UNDER_CONTRACT,
)

_MLS_STATUS_MAP = {
    "active": STATUS_FOR_SALE,
    "new": STATUS_JUST_LISTED,
    "a": STATUS_FOR_SALE,
    "for sale": STATUS_FOR_SALE,
    "for lease": STATUS_FOR_LEASE,
    "for rent": STATUS_FOR_LEASE,
    "lease": STATUS_FOR_LEASE,
    "leased": STATUS_JUST_SOLD,
    "pending": STATUS_UNDER_CONTRACT,
    "active under contract": STATUS_UNDER_CONTRACT,
    "under contract": STATUS_UNDER_CONTRACT,
    "contingent": STATUS_UNDER_CONTRACT,
    "u": STATUS_UNDER_CONTRACT,
    "closed": STATUS_JUST_SOLD,
    "sold": STATUS_JUST_SOLD,
    "s": STATUS_JUST_SOLD,
    "coming soon": STATUS_COMING_SOON,
    "open house": STATUS_OPEN_HOUSE,
    "price reduced": STATUS_PRICE_IMPROVEMENT,
    "price improvement": STATUS_PRICE_IMPROVEMENT,
}


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", " ").strip()
    text = re.sub(r"\s+", " ", text)
    return text or None


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = clean_text(value)
    if not text:
        return None
    if not re.fullmatch(r"[-+]?[\d,]*\.?\d+", text):
        return None
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


def normalize_status(value: Any) -> str:
    text = clean_text(value) or ""
    return re.sub(r"[\s\-]+", "_", text.lower())


def status_label(status: Any) -> str:
    key = normalize_status(status)
    label = STATUS_LABELS.get(key)
    if label is None:
        label = key.replace("_", " ").strip() or STATUS_LABELS[STATUS_JUST_LISTED]
    return label.upper()


def status_color(status: Any) -> str:
    return STATUS_COLORS.get(normalize_status(status), DEFAULT_STATUS_COLOR)


def status_from_mls(text: Any) -> str:
    """Map free-form MLS status text onto the status enumeration."""
    cleaned = (clean_text(text) or "").lower()
    if not cleaned:
        return STATUS_JUST_LISTED
    key = normalize_status(cleaned)
    if key in STATUS_LABELS:
        return key
    if cleaned in _MLS_STATUS_MAP:
        return _MLS_STATUS_MAP[cleaned]
    for needle, status in _MLS_STATUS_MAP.items():
        if len(needle) > 1 and needle in cleaned:
            return status
    return STATUS_JUST_LISTED


def format_price(value: Any) -> str:
    numeric = _to_float(value)
    if numeric is None:
        return clean_text(value) or ""
    return f"${numeric:,.0f}"


def format_number(value: Any) -> str:
    numeric = _to_float(value)
    if numeric is None:
        return clean_text(value) or ""
    if numeric.is_integer():
        return f"{int(numeric):,}"
    return f"{numeric:,.1f}"


def format_rooms(value: Any) -> str:
    numeric = _to_float(value)
    if numeric is None:
        return clean_text(value) or ""
    if numeric.is_integer():
        return str(int(numeric))
    return f"{numeric:g}"


def split_address(address: Any) -> tuple[str, str]:
    """Split "123 Main St, Austin, TX" into ("123 Main St", "Austin, TX")."""
    text = clean_text(address) or ""
    parts = [part.strip() for part in text.split(",") if part.strip()]
    if not parts:
        return ("", "")
    return (parts[0], ", ".join(parts[1:]))


def agent_name_line(name: Any, phone: Any, *, inline_phone: bool = False) -> str:
    agent_name = clean_text(name) or ""
    agent_phone = clean_text(phone) or ""
    if not agent_name:
        return agent_phone
    if not agent_phone:
        return agent_name
    if inline_phone:
        return f"{agent_name}{REALTOR_SUFFIX} | {agent_phone}"
    return f"{agent_name}{REALTOR_SUFFIX}"
