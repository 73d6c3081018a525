from __future__ import annotations

import re
from pathlib import Path

from listingstamp.formatting import normalize_status, split_address
from listingstamp.models import ListingFields

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')


def sanitize_token(value: str | None, fallback: str = "NA") -> str:
    text = (value or "").strip()
    if not text:
        text = fallback
    text = INVALID_FILENAME_CHARS.sub("_", text)
    text = re.sub(r"[\s,#]+", "_", text)
    text = text.strip(" ._")
    return text or fallback


def sanitize_filename(value: str, fallback: str = "output") -> str:
    text = INVALID_FILENAME_CHARS.sub("_", value).strip()
    text = text.strip(" .")
    return text or fallback


def build_output_name(
    name_template: str,
    template_id: str,
    fields: ListingFields,
    extension: str,
    status: str | None = None,
) -> str:
    """Expand ``{template}``, ``{street}``, ``{city}``, ``{status}``, ``{price}``
    and ``{ext}`` into a filesystem-safe output name."""
    ext = extension.lower().lstrip(".")
    street, city = split_address(fields.address)
    values = {
        "template": sanitize_token(template_id, fallback="listing"),
        "street": sanitize_token(street, fallback="listing"),
        "city": sanitize_token(city),
        "status": sanitize_token(normalize_status(status or fields.status)),
        "price": sanitize_token(re.sub(r"[^\d]", "", str(fields.price or "")), fallback="NA"),
        "ext": ext,
    }
    try:
        rendered = name_template.format(**values)
    except KeyError as exc:
        missing = str(exc).strip("'")
        raise ValueError(f"name template contains unknown key: {missing}") from exc

    rendered = sanitize_filename(rendered, fallback=f"{values['template']}.{ext}")
    if not Path(rendered).suffix:
        rendered = f"{rendered}.{ext}"
    return rendered
