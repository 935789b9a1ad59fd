"""State fingerprints used for draft dirty tracking."""

from __future__ import annotations

import hashlib
from typing import Any

from .wire_json import canonical_dumps


def state_fingerprint(state: Any) -> str:
    """Return the canonical SHA-256 fingerprint of a JSON-compatible state."""
    data = canonical_dumps(state).encode("utf-8")
    return f"sha256:{hashlib.sha256(data).hexdigest()}"
