"""Catalog record types."""

from __future__ import annotations

import hashlib
import mimetypes
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

from catalog.errors import FieldTypeError, UnknownField


@dataclass(frozen=True)
class Ingredient:
    name: str = ""
    strength: str = ""


@dataclass(frozen=True)
class Mechanism:
    """Mechanism-of-action pair: the drug and a description of how it acts."""

    drug: str = ""
    moa: str = ""


@dataclass
class ProductFields:
    """Scalar attributes of a product.

    Attribute names are Python-side; `WIRE_NAMES` maps them to the form field
    names the store expects. Both spellings are accepted by `with_changes`.
    """

    product_name: str = ""
    generic_name: str = ""
    brand_name: str = ""
    strength: str = ""
    dosage_form: str = ""
    administration_route: str = ""
    pack_size: str = ""
    mrp: str = ""
    storage: str = ""
    prescription_required: bool = True
    category: str = ""
    is_featured: bool = False
    color: str = "#f0f0f0"

    def to_wire(self) -> dict:
        return {WIRE_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}

    def with_changes(self, changes: Mapping[str, Any]) -> "ProductFields":
        resolved = {}
        for key, value in changes.items():
            attr = resolve_field_name(key)
            expected = _FIELD_TYPES[attr]
            if not isinstance(value, expected) or (expected is str and isinstance(value, bool)):
                raise FieldTypeError(f"{WIRE_NAMES[attr]} must be a {expected.__name__}", field=WIRE_NAMES[attr])
            resolved[attr] = value
        return replace(self, **resolved)


WIRE_NAMES = {
    "product_name": "productName",
    "generic_name": "genericName",
    "brand_name": "brandName",
    "strength": "strength",
    "dosage_form": "dosageForm",
    "administration_route": "administrationRoute",
    "pack_size": "packSize",
    "mrp": "mrp",
    "storage": "storage",
    "prescription_required": "prescriptionRequired",
    "category": "category",
    "is_featured": "isFeatured",
    "color": "color",
}
_ATTR_BY_WIRE = {wire: attr for attr, wire in WIRE_NAMES.items()}
_FIELD_TYPES = {f.name: (bool if f.type in ("bool", bool) else str) for f in fields(ProductFields)}


def resolve_field_name(name: str) -> str:
    if name in WIRE_NAMES:
        return name
    attr = _ATTR_BY_WIRE.get(name)
    if attr is None:
        raise UnknownField(f"Unknown field: {name}", field=name)
    return attr


@dataclass
class ProductRecord:
    id: str
    fields: ProductFields
    composition: list[Ingredient] = field(default_factory=list)
    mechanism_of_action: list[Mechanism] = field(default_factory=list)
    uses: list[str] = field(default_factory=list)
    indications: list[str] = field(default_factory=list)
    contraindications: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    created_at: str | None = None


@dataclass
class CategoryRecord:
    id: str
    name: str
    slug: str | None = None
    icon: str | None = None


@dataclass
class BlogPost:
    id: str
    title: str = ""
    description: str = ""
    sender_name: str = ""
    image_url: str | None = None
    sender_photo: str | None = None
    created_at: str | None = None


@dataclass
class ContactMessage:
    id: str
    full_name: str = ""
    email: str = ""
    query_type: str = ""
    message: str = ""
    created_at: str | None = None


@dataclass(frozen=True)
class QueuedFile:
    """A new binary attachment selected for upload."""

    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "QueuedFile":
        path_obj = Path(path)
        guessed = content_type or mimetypes.guess_type(path_obj.name)[0] or "application/octet-stream"
        return cls(filename=path_obj.name, content=path_obj.read_bytes(), content_type=guessed)

    @property
    def size(self) -> int:
        return len(self.content)

    def digest(self) -> str:
        return hashlib.sha256(self.content).hexdigest()

    def describe(self) -> dict:
        return {"filename": self.filename, "size": self.size, "sha256": self.digest()}
