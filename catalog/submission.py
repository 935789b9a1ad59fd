"""Encoding of drafts into transport payloads.

`encode` is pure: it reads a draft snapshot and never mutates the draft. The
same draft state always yields the same payload.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from rxkit.wire_json import canonical_dumps

from catalog.drafts import CategoryDraft, ProductDraft
from catalog.models import QueuedFile


EXISTING_IMAGES_FIELD = "existingImages"
NEW_IMAGES_FIELD = "productImages"


def form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class Payload:
    fields: dict = field(default_factory=dict)
    blobs: dict = field(default_factory=dict)
    attachments: tuple[tuple[str, QueuedFile], ...] = ()
    json_body: bool = False

    def decode_blob(self, name: str) -> Any:
        return json.loads(self.blobs[name])

    def attachment_files(self, name: str = NEW_IMAGES_FIELD) -> list[QueuedFile]:
        return [file for field_name, file in self.attachments if field_name == name]

    def json(self) -> dict:
        return dict(self.fields)

    def multipart(self) -> list[tuple[str, tuple]]:
        """Render as httpx `files=` parts.

        Text fields are sent as file-less parts so the body is always
        multipart/form-data, with or without attachments.
        """
        parts: list[tuple[str, tuple]] = []
        for name, value in self.fields.items():
            parts.append((name, (None, form_value(value))))
        for name, blob in self.blobs.items():
            parts.append((name, (None, blob)))
        for name, file in self.attachments:
            parts.append((name, (file.filename, file.content, file.content_type)))
        return parts


def encode_product(draft: ProductDraft) -> Payload:
    blobs = {}
    for wire, group in draft.groups().items():
        blobs[wire] = canonical_dumps(group.non_blank())
    blobs[EXISTING_IMAGES_FIELD] = canonical_dumps(draft.images.kept)
    attachments = tuple((NEW_IMAGES_FIELD, file) for file in draft.images.queued)
    return Payload(fields=draft.fields.to_wire(), blobs=blobs, attachments=attachments)


def encode_category(draft: CategoryDraft) -> Payload:
    return Payload(fields={"name": draft.name}, json_body=True)


def encode(draft: ProductDraft | CategoryDraft) -> Payload:
    if isinstance(draft, ProductDraft):
        return encode_product(draft)
    if isinstance(draft, CategoryDraft):
        return encode_category(draft)
    raise TypeError(f"cannot encode {type(draft).__name__}")
