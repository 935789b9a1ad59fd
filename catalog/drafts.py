"""Editable drafts of catalog records.

One draft class serves both the new-record and the edit-record flows: a draft
is either created empty (`origin == "new"`) or hydrated from a record fetched
from the store (`origin == "hydrated"`). Drafts never talk to the network.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping

from rxkit.fingerprint import state_fingerprint
from rxkit.wire_json import to_wire

from catalog.errors import FieldTypeError, SubmissionInFlight, UnknownField, ValidationError
from catalog.field_groups import FieldGroup
from catalog.image_staging import ImageStagingSet
from catalog.models import CategoryRecord, Ingredient, Mechanism, ProductFields, ProductRecord, resolve_field_name
from catalog.previews import PreviewFactory
from catalog.records import PRODUCT_GROUP_WIRE_NAMES
from catalog.records_validation import validate_category, validate_product, violated_fields


ORIGIN_NEW = "new"
ORIGIN_HYDRATED = "hydrated"


@dataclass
class ValidationResult:
    fields: list[str] = field(default_factory=list)
    issues: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.fields

    @classmethod
    def from_issues(cls, issues: list[dict]) -> "ValidationResult":
        return cls(fields=violated_fields(issues), issues=issues)

    def raise_for_errors(self) -> None:
        if self.ok:
            return
        raise ValidationError(
            "Please fill required fields: " + ", ".join(self.fields),
            fields=list(self.fields),
            issues=copy.deepcopy(self.issues),
        )


class _DraftBase(ABC):
    record_id: str | None
    origin: str

    def __init__(self) -> None:
        self._submitting = False
        self._closed = False
        self._baseline = ""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_new(self) -> bool:
        return self.origin == ORIGIN_NEW

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def is_dirty(self) -> bool:
        return state_fingerprint(self.snapshot()) != self._baseline

    def mark_clean(self) -> None:
        self._baseline = state_fingerprint(self.snapshot())

    def begin_submit(self) -> None:
        if self._submitting:
            raise SubmissionInFlight("a submission for this draft is already in progress")
        self._submitting = True

    def end_submit(self) -> None:
        self._submitting = False

    def ensure_valid(self) -> None:
        self.validate().raise_for_errors()

    @abstractmethod
    def validate(self) -> ValidationResult:
        ...

    @abstractmethod
    def snapshot(self) -> dict:
        ...

    def close(self) -> None:
        self._closed = True


class ProductDraft(_DraftBase):
    def __init__(
        self,
        seed: ProductRecord | None = None,
        previews: PreviewFactory | None = None,
        max_queued_images: int | None = None,
    ) -> None:
        super().__init__()
        self.record_id = seed.id if seed is not None else None
        self.origin = ORIGIN_HYDRATED if seed is not None else ORIGIN_NEW
        self._fields = copy.deepcopy(seed.fields) if seed is not None else ProductFields()
        self.composition: FieldGroup[Ingredient] = FieldGroup(
            "composition", Ingredient(), seed.composition if seed else None
        )
        self.mechanism_of_action: FieldGroup[Mechanism] = FieldGroup(
            "mechanismOfAction", Mechanism(), seed.mechanism_of_action if seed else None
        )
        self.uses: FieldGroup[str] = FieldGroup("uses", "", seed.uses if seed else None)
        self.indications: FieldGroup[str] = FieldGroup("indications", "", seed.indications if seed else None)
        self.contraindications: FieldGroup[str] = FieldGroup(
            "contraindications", "", seed.contraindications if seed else None
        )
        self.images = ImageStagingSet(previews=previews, max_queued=max_queued_images)
        if seed is not None:
            self.images.init_from_existing(seed.images)
        self.mark_clean()

    @classmethod
    def create(cls, previews: PreviewFactory | None = None, max_queued_images: int | None = None) -> "ProductDraft":
        return cls(None, previews=previews, max_queued_images=max_queued_images)

    @classmethod
    def hydrate(
        cls,
        record: ProductRecord,
        previews: PreviewFactory | None = None,
        max_queued_images: int | None = None,
    ) -> "ProductDraft":
        return cls(record, previews=previews, max_queued_images=max_queued_images)

    @property
    def fields(self) -> ProductFields:
        return copy.deepcopy(self._fields)

    def get_field(self, name: str) -> Any:
        return getattr(self._fields, resolve_field_name(name))

    def set_field(self, name: str, value: Any) -> None:
        self._fields = self._fields.with_changes({name: value})

    def update_fields(self, changes: Mapping[str, Any]) -> None:
        self._fields = self._fields.with_changes(changes)

    def group(self, name: str) -> FieldGroup:
        for attr, wire in PRODUCT_GROUP_WIRE_NAMES.items():
            if name in (attr, wire):
                return getattr(self, attr)
        raise KeyError(name)

    def groups(self) -> dict[str, FieldGroup]:
        return {wire: getattr(self, attr) for attr, wire in PRODUCT_GROUP_WIRE_NAMES.items()}

    def validate(self) -> ValidationResult:
        return ValidationResult.from_issues(validate_product(self._fields, self.uses.entries()))

    def snapshot(self) -> dict:
        return {
            "record_id": self.record_id,
            "fields": self._fields.to_wire(),
            "groups": {wire: to_wire(group.entries()) for wire, group in self.groups().items()},
            "images": self.images.snapshot(),
        }

    def close(self) -> None:
        self.images.dispose()
        super().close()


class CategoryDraft(_DraftBase):
    def __init__(self, seed: CategoryRecord | None = None) -> None:
        super().__init__()
        self.record_id = seed.id if seed is not None else None
        self.origin = ORIGIN_HYDRATED if seed is not None else ORIGIN_NEW
        self.name = seed.name if seed is not None else ""
        self.mark_clean()

    @classmethod
    def create(cls, **_: Any) -> "CategoryDraft":
        return cls(None)

    @classmethod
    def hydrate(cls, record: CategoryRecord, **_: Any) -> "CategoryDraft":
        return cls(record)

    def set_field(self, name: str, value: Any) -> None:
        if name != "name":
            raise UnknownField(f"Unknown field: {name}", field=name)
        if not isinstance(value, str):
            raise FieldTypeError("name must be a str", field="name")
        self.name = value

    def validate(self) -> ValidationResult:
        return ValidationResult.from_issues(validate_category(self.name))

    def snapshot(self) -> dict:
        return {"record_id": self.record_id, "fields": {"name": self.name}}
