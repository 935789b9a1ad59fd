"""Catalog kernel utilities."""

from .fingerprint import state_fingerprint
from .wire_json import WireJsonTypeError, canonical_dumps, to_wire

__all__ = [
    "WireJsonTypeError",
    "canonical_dumps",
    "state_fingerprint",
    "to_wire",
]
