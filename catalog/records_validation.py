"""Required-field and format checks for catalog drafts."""

from __future__ import annotations

import math
import re
from typing import Iterable

from catalog.field_groups import is_blank_entry
from catalog.models import ProductFields


PRODUCT_REQUIRED_FIELDS = ("productName", "genericName", "strength", "category")

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> dict:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_product(fields: ProductFields, uses: Iterable[str]) -> list[dict]:
    errors: list[dict] = []
    data = fields.to_wire()
    for field_id in PRODUCT_REQUIRED_FIELDS:
        if _is_missing(data.get(field_id)):
            errors.append(_issue("REQUIRED_FIELD", f"Missing required field: {field_id}", path=field_id))

    if all(is_blank_entry(use) for use in uses):
        errors.append(_issue("REQUIRED_GROUP", "Please add at least one use", path="uses"))

    mrp = data.get("mrp")
    if isinstance(mrp, str) and mrp.strip():
        try:
            price = float(mrp)
        except ValueError:
            errors.append(_issue("INVALID_NUMBER", "mrp must be a number", path="mrp"))
        else:
            if not math.isfinite(price) or price < 0:
                errors.append(_issue("INVALID_NUMBER", "mrp must be a non-negative number", path="mrp"))

    color = data.get("color")
    if isinstance(color, str) and color.strip() and not _HEX_COLOR_RE.match(color.strip()):
        errors.append(_issue("INVALID_COLOR", "color must be a hex value like #f0f0f0", path="color"))
    return errors


def validate_category(name: str) -> list[dict]:
    if _is_missing(name):
        return [_issue("REQUIRED_FIELD", "Missing required field: name", path="name")]
    return []


def violated_fields(errors: list[dict]) -> list[str]:
    return list(dict.fromkeys(e["path"] for e in errors if e.get("path")))
