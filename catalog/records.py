"""Parsing of store documents and per-collection endpoint specs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from catalog.models import (
    BlogPost,
    CategoryRecord,
    ContactMessage,
    Ingredient,
    Mechanism,
    ProductFields,
    ProductRecord,
)

logger = logging.getLogger("catalog.records")


def record_id(raw: dict) -> str:
    value = raw.get("_id", raw.get("id"))
    return str(value) if value is not None else ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flag(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _json_list(value: Any, field_id: str) -> list:
    # Stores that keep repeatable parts as text hand them back JSON-encoded.
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("record_field_not_json field=%s", field_id)
            return [value]
    if isinstance(value, list):
        return value
    return [value]


def _category_ref(value: Any) -> str:
    if isinstance(value, dict):
        return _text(value.get("_id", value.get("id")))
    return _text(value)


def _images(raw: dict) -> list[str]:
    value = raw.get("productImage", raw.get("images"))
    if isinstance(value, list):
        return [str(v) for v in value if v]
    if isinstance(value, str) and value:
        return [value]
    return []


def parse_product(raw: dict) -> ProductRecord:
    scalars = ProductFields(
        product_name=_text(raw.get("productName")),
        generic_name=_text(raw.get("genericName")),
        brand_name=_text(raw.get("brandName")),
        strength=_text(raw.get("strength")),
        dosage_form=_text(raw.get("dosageForm")),
        administration_route=_text(raw.get("administrationRoute")),
        pack_size=_text(raw.get("packSize")),
        mrp=_text(raw.get("mrp")),
        storage=_text(raw.get("storage")),
        prescription_required=_flag(raw.get("prescriptionRequired")),
        category=_category_ref(raw.get("category")),
        is_featured=_flag(raw.get("isFeatured")),
        color=_text(raw.get("color")),
    )
    composition = [
        Ingredient(name=_text(item.get("name")), strength=_text(item.get("strength")))
        for item in _json_list(raw.get("composition"), "composition")
        if isinstance(item, dict)
    ]
    mechanisms = [
        Mechanism(drug=_text(item.get("drug")), moa=_text(item.get("moa")))
        for item in _json_list(raw.get("mechanismOfAction"), "mechanismOfAction")
        if isinstance(item, dict)
    ]
    return ProductRecord(
        id=record_id(raw),
        fields=scalars,
        composition=composition,
        mechanism_of_action=mechanisms,
        uses=[_text(v) for v in _json_list(raw.get("uses"), "uses")],
        indications=[_text(v) for v in _json_list(raw.get("indications"), "indications")],
        contraindications=[_text(v) for v in _json_list(raw.get("contraindications"), "contraindications")],
        images=_images(raw),
        created_at=raw.get("createdAt"),
    )


def parse_category(raw: dict) -> CategoryRecord:
    return CategoryRecord(
        id=record_id(raw),
        name=_text(raw.get("name")),
        slug=raw.get("slug"),
        icon=raw.get("icon"),
    )


def parse_blog(raw: dict) -> BlogPost:
    return BlogPost(
        id=record_id(raw),
        title=_text(raw.get("title")),
        description=_text(raw.get("description")),
        sender_name=_text(raw.get("senderName")),
        image_url=raw.get("imageUrl") or None,
        sender_photo=raw.get("senderPhoto") or None,
        created_at=raw.get("createdAt"),
    )


def parse_contact(raw: dict) -> ContactMessage:
    return ContactMessage(
        id=record_id(raw),
        full_name=_text(raw.get("fullName")),
        email=_text(raw.get("email")),
        query_type=_text(raw.get("queryType")),
        message=_text(raw.get("message")),
        created_at=raw.get("createdAt"),
    )


def unwrap_list(body: Any, keys: tuple[str, ...]) -> list[dict] | None:
    """Return the record list from a list response, or None if the shape is unknown."""
    if isinstance(body, list):
        return [item for item in body if isinstance(item, dict)]
    if not isinstance(body, dict):
        return None
    for key in keys:
        value = body.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
    return None


def unwrap_record(body: Any) -> dict | None:
    if not isinstance(body, dict):
        return None
    for key in ("data", "product", "category", "record"):
        value = body.get(key)
        if isinstance(value, dict):
            return value
    if "_id" in body or "id" in body:
        return body
    return None


def _newest_first(record: Any) -> str:
    return getattr(record, "created_at", None) or ""


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    list_path: str
    parse: Callable[[dict], Any]
    list_keys: tuple[str, ...] = ("data",)
    create_path: str | None = None
    update_path: str | None = None
    delete_path: str | None = None
    newest_first: bool = False

    def sort(self, records: list) -> list:
        if not self.newest_first:
            return records
        return sorted(records, key=_newest_first, reverse=True)


PRODUCTS = CollectionSpec(
    name="product",
    list_path="/api/products/getall",
    parse=parse_product,
    create_path="/api/products/add",
    update_path="/api/products/update/{id}",
    delete_path="/api/products/delete/{id}",
)

CATEGORIES = CollectionSpec(
    name="category",
    list_path="/api/categories/getall",
    parse=parse_category,
    create_path="/api/categories/add",
    update_path="/api/categories/update/{id}",
    delete_path="/api/categories/delete/{id}",
)

BLOGS = CollectionSpec(
    name="blog",
    list_path="/api/blogs/getall",
    parse=parse_blog,
    list_keys=("posts", "data"),
    delete_path="/api/blogs/delete/{id}",
)

CONTACTS = CollectionSpec(
    name="contact",
    list_path="/api/contact/getallcontacts",
    parse=parse_contact,
    delete_path="/api/contact/delete/{id}",
    newest_first=True,
)

PRODUCT_GROUP_WIRE_NAMES = {
    "composition": "composition",
    "mechanism_of_action": "mechanismOfAction",
    "uses": "uses",
    "indications": "indications",
    "contraindications": "contraindications",
}
