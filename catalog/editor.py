"""Operation boundary between user actions, drafts and the remote store.

Failures never escape `submit` or `delete`: each one becomes a notice plus a
`{"ok": False, "errors": [...]}` result, and the open draft is left untouched
so the operator can retry.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from event_bus import EventBus, event_name, make_event
from notices import NoticeBoard

from catalog.drafts import CategoryDraft, ProductDraft
from catalog.errors import CatalogError, NotFound, ValidationError
from catalog.previews import PreviewFactory
from catalog.submission import encode
from catalog.sync_client import RecordSyncClient

logger = logging.getLogger("catalog.editor")

Draft = ProductDraft | CategoryDraft


def _result(ok: bool, record: Any = None, errors: list[dict] | None = None) -> dict:
    return {"ok": ok, "record": record, "errors": errors or []}


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> dict:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _check_actor(actor: dict | None) -> dict | None:
    if actor is None:
        return None
    if not isinstance(actor, dict) or not isinstance(actor.get("id"), str) or not actor["id"]:
        raise ValueError("actor must be a dict with a non-empty string id")
    return actor


class RecordEditor:
    def __init__(
        self,
        client: RecordSyncClient,
        draft_type: type = ProductDraft,
        bus: EventBus | None = None,
        notices: NoticeBoard | None = None,
        previews: PreviewFactory | None = None,
        max_queued_images: int | None = None,
        actor: dict | None = None,
    ) -> None:
        self.client = client
        self.draft_type = draft_type
        self.bus = bus
        self.notices = notices if notices is not None else NoticeBoard()
        self.previews = previews
        self.max_queued_images = max_queued_images
        self.actor = _check_actor(actor)
        self.field_errors: dict[str, str] = {}
        self._draft: Draft | None = None

    @property
    def draft(self) -> Draft | None:
        return self._draft

    @property
    def can_submit(self) -> bool:
        return self._draft is not None and not self._draft.submitting

    @property
    def _label(self) -> str:
        return self.client.collection.capitalize()

    def _draft_options(self) -> dict:
        return {"previews": self.previews, "max_queued_images": self.max_queued_images}

    def _replace_draft(self, draft: Draft | None) -> Draft | None:
        # A draft with a submission in flight is closed by `submit` once it settles.
        if self._draft is not None and not self._draft.submitting:
            self._draft.close()
        self._draft = draft
        self.field_errors = {}
        return draft

    def open_new(self) -> Draft:
        return self._replace_draft(self.draft_type.create(**self._draft_options()))

    def open_existing(self, record: Any) -> Draft:
        return self._replace_draft(self.draft_type.hydrate(record, **self._draft_options()))

    def cancel(self) -> None:
        self._replace_draft(None)

    def _fail(self, exc: CatalogError, record_id: str | None = None) -> dict:
        detail = None
        if isinstance(exc, NotFound):
            detail = {"record_id": exc.record_id or record_id, "refresh_hint": exc.refresh_hint}
        issue = _issue(exc.code, exc.message, detail=detail)
        self.notices.post("error", exc.code, exc.message, detail=detail)
        logger.warning("editor_operation_failed collection=%s code=%s", self.client.collection, exc.code)
        return _result(False, errors=[issue])

    def _actor(self) -> dict | None:
        if self.actor is not None:
            return self.actor
        session = self.client.session
        return session.actor() if session is not None else None

    def _publish(self, action: str, record_id: str | None) -> None:
        if self.bus is None:
            return
        event = make_event(
            event_name(self.client.collection, action),
            {"record_id": record_id, "collection": self.client.collection},
            meta={"actor": self._actor()},
        )
        self.bus.publish(event)

    async def submit(self) -> dict:
        draft = self._draft
        if draft is None:
            issue = _issue("NO_DRAFT", "Nothing to submit")
            return _result(False, errors=[issue])
        if draft.submitting:
            issue = _issue("SUBMIT_IN_FLIGHT", "A submission is already in progress")
            return _result(False, errors=[issue])

        validation = draft.validate()
        if not validation.ok:
            self.field_errors = {issue["path"]: issue["message"] for issue in validation.issues if issue.get("path")}
            try:
                validation.raise_for_errors()
            except ValidationError as exc:
                self.notices.post("error", exc.code, exc.message, detail={"fields": exc.fields})
                return _result(False, errors=exc.issues)
        self.field_errors = {}

        is_new = draft.is_new
        payload = encode(draft)
        draft.begin_submit()
        try:
            if is_new:
                record = await self.client.create(payload)
            else:
                record = await self.client.update(draft.record_id, payload)
        except CatalogError as exc:
            if self._draft is not draft:
                draft.close()
            return self._fail(exc, draft.record_id)
        finally:
            draft.end_submit()

        action = "created" if is_new else "updated"
        message = f"{self._label} added successfully" if is_new else f"{self._label} updated successfully"
        self.notices.post("success", f"{self.client.collection.upper()}_{action.upper()}", message)
        record_id = getattr(record, "id", None) or draft.record_id
        logger.info("editor_submitted collection=%s action=%s record_id=%s", self.client.collection, action, record_id)
        if self._draft is draft:
            self._replace_draft(None)
        else:
            draft.close()
        self._publish(action, record_id)
        return _result(True, record=record)

    async def delete(self, record_id: str, confirm: Callable[[str], bool] | None = None) -> dict:
        if confirm is None or not confirm(record_id):
            return _result(False, errors=[_issue("DELETE_CANCELLED", "Delete was not confirmed")])
        try:
            message = await self.client.delete(record_id)
        except CatalogError as exc:
            return self._fail(exc, record_id)
        self.notices.post("success", f"{self.client.collection.upper()}_DELETED", message)
        logger.info("editor_deleted collection=%s record_id=%s", self.client.collection, record_id)
        if self._draft is not None and self._draft.record_id == record_id:
            self._replace_draft(None)
        self._publish("deleted", record_id)
        return _result(True)
