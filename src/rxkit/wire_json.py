"""Deterministic JSON for structured form blobs and draft snapshots."""

from __future__ import annotations

import dataclasses
import json
import math
from typing import Any


class WireJsonTypeError(TypeError):
    """Raised when a value has no JSON wire form."""


def to_wire(obj: Any, path: str = "$") -> Any:
    """Convert dataclass entries and tuples into plain JSON values.

    Frozen entry records (ingredients, mechanism pairs) become objects keyed by
    their field names; everything else must already be a JSON primitive.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_wire(getattr(obj, f.name), f"{path}.{f.name}") for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise WireJsonTypeError(f"Unsupported key type at {path}: {type(key).__name__}")
            out[key] = to_wire(value, f"{path}.{key}")
        return out
    if isinstance(obj, (list, tuple)):
        return [to_wire(item, f"{path}[{idx}]") for idx, item in enumerate(obj)]
    if obj is None or isinstance(obj, (str, bool, int)):
        return obj
    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise ValueError(f"Non-finite float at {path}: {obj!r}")
        return obj
    raise WireJsonTypeError(f"Unsupported type at {path}: {type(obj).__name__}")


def canonical_dumps(obj: Any) -> str:
    """Serialize to canonical JSON.

    Rules:
    - Sort object keys recursively.
    - Preserve list order (entry order is display order).
    - UTF-8 with non-ASCII preserved.
    - No extra whitespace.
    """
    return json.dumps(
        to_wire(obj),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
