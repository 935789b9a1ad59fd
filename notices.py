"""In-memory queue of user-facing notices raised at operation boundaries."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from typing import Dict, List


Notice = Dict[str, object]

LEVELS = ("success", "info", "error")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class NoticeBoard:
    def __init__(self) -> None:
        self._notices: List[Notice] = []

    def post(
        self,
        level: str,
        code: str,
        message: str,
        field: str | None = None,
        detail: dict | None = None,
    ) -> Notice:
        if level not in LEVELS:
            raise ValueError(f"level must be one of {LEVELS}")
        notice = {
            "id": str(uuid.uuid4()),
            "level": level,
            "code": code,
            "message": message,
            "field": field,
            "detail": copy.deepcopy(detail),
            "posted_at": _now(),
        }
        self._notices.append(notice)
        return copy.deepcopy(notice)

    def pending(self, level: str | None = None) -> list[Notice]:
        return [copy.deepcopy(n) for n in self._notices if level is None or n["level"] == level]

    def ack(self, notice_id: str) -> bool:
        for idx, notice in enumerate(self._notices):
            if notice.get("id") == notice_id:
                del self._notices[idx]
                return True
        return False

    def clear(self) -> None:
        self._notices.clear()
