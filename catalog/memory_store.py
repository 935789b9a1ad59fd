"""In-memory catalog store speaking the same HTTP contract as the remote store.

Used as a development and test double: `create_store_app()` returns a FastAPI
app that can be mounted behind `httpx.ASGITransport`.
"""

from __future__ import annotations

import copy
import json
import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile

from catalog.auth import OperatorTokenMiddleware, issue_operator_token
from catalog.models import WIRE_NAMES

logger = logging.getLogger("catalog.store")

PRODUCT_JSON_FIELDS = ("composition", "mechanismOfAction", "uses", "indications", "contraindications")
COLLECTIONS = ("products", "categories", "blogs", "contacts")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


class StoreRejected(Exception):
    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class MemoryCatalogStore:
    def __init__(self, seed: Dict[str, List[dict]] | None = None) -> None:
        self._records: Dict[str, Dict[str, dict]] = {name: {} for name in COLLECTIONS}
        self._uploads: Dict[str, tuple[bytes, str]] = {}
        for collection, docs in (seed or {}).items():
            for doc in docs:
                self.insert(collection, doc)

    def insert(self, collection: str, values: dict) -> dict:
        record = copy.deepcopy(values)
        record.setdefault("_id", _new_id())
        record.setdefault("createdAt", _now())
        self._records[collection][record["_id"]] = record
        return copy.deepcopy(record)

    def list_records(self, collection: str) -> list[dict]:
        return [copy.deepcopy(v) for v in self._records[collection].values()]

    def get_record(self, collection: str, record_id: str) -> dict | None:
        rec = self._records[collection].get(record_id)
        return copy.deepcopy(rec) if rec else None

    def delete_record(self, collection: str, record_id: str) -> bool:
        return self._records[collection].pop(record_id, None) is not None

    def _name_taken(self, collection: str, key: str, value: str, exclude: str | None = None) -> bool:
        wanted = value.strip().lower()
        for rid, rec in self._records[collection].items():
            if rid != exclude and str(rec.get(key, "")).strip().lower() == wanted:
                return True
        return False

    def save_upload(self, filename: str, data: bytes, content_type: str | None = None) -> str:
        safe_name = filename.replace("..", "_").replace("/", "_")
        key = f"{uuid.uuid4().hex}_{safe_name}"
        self._uploads[key] = (data, content_type or "application/octet-stream")
        return f"/uploads/{key}"

    def read_upload(self, key: str) -> tuple[bytes, str] | None:
        return self._uploads.get(key)

    def upload_count(self) -> int:
        return len(self._uploads)

    def create_product(self, values: dict, images: list[str]) -> dict:
        if self._name_taken("products", "productName", values.get("productName", "")):
            raise StoreRejected("Product with this name already exists")
        values["productImage"] = images
        return self.insert("products", values)

    def update_product(self, record_id: str, values: dict, kept: list[str], images: list[str]) -> dict:
        current = self._records["products"].get(record_id)
        if current is None:
            raise StoreRejected("Product not found", status=404)
        if self._name_taken("products", "productName", values.get("productName", ""), exclude=record_id):
            raise StoreRejected("Product with this name already exists")
        current.update(copy.deepcopy(values))
        current["productImage"] = list(kept) + list(images)
        current["updatedAt"] = _now()
        return copy.deepcopy(current)

    def create_category(self, name: str) -> dict:
        if not name.strip():
            raise StoreRejected("Category name is required")
        if self._name_taken("categories", "name", name):
            raise StoreRejected("Category already exists")
        return self.insert("categories", {"name": name.strip(), "slug": name.strip().lower().replace(" ", "-")})

    def update_category(self, record_id: str, name: str) -> dict:
        current = self._records["categories"].get(record_id)
        if current is None:
            raise StoreRejected("Category not found", status=404)
        if not name.strip():
            raise StoreRejected("Category name is required")
        if self._name_taken("categories", "name", name, exclude=record_id):
            raise StoreRejected("Category already exists")
        current["name"] = name.strip()
        current["slug"] = name.strip().lower().replace(" ", "-")
        return copy.deepcopy(current)


def _ok(payload: dict, status: int = 200) -> JSONResponse:
    return JSONResponse(jsonable_encoder({"success": True, **payload}), status_code=status)


def _error(message: str, status: int = 400) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status)


def _decode_json_field(name: str, raw: Any) -> Any:
    if raw is None or raw == "":
        return []
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise StoreRejected(f"{name} must be valid JSON") from exc


async def _read_product_form(store: MemoryCatalogStore, request: Request) -> tuple[dict, list[str], list[str]]:
    form = await request.form()
    values: dict = {}
    for wire in WIRE_NAMES.values():
        value = form.get(wire)
        if isinstance(value, str):
            values[wire] = value
    for key in ("prescriptionRequired", "isFeatured"):
        if key in values:
            values[key] = values[key] == "true"
    for key in PRODUCT_JSON_FIELDS:
        values[key] = _decode_json_field(key, form.get(key))
    kept = _decode_json_field("existingImages", form.get("existingImages"))
    uploads = []
    for item in form.getlist("productImages"):
        if isinstance(item, UploadFile):
            data = await item.read()
            uploads.append(store.save_upload(item.filename or "upload", data, item.content_type))
    return values, kept, uploads


def create_store_app(
    seed: Dict[str, List[dict]] | None = None,
    secret: str | None = None,
    require_auth: bool = False,
    operators: Dict[str, str] | None = None,
) -> FastAPI:
    store = MemoryCatalogStore(seed)
    token_secret = secret or secrets.token_hex(32)
    accounts = dict(operators or {})

    app = FastAPI(title="catalog-memory-store")
    app.state.store = store
    if require_auth:
        app.add_middleware(OperatorTokenMiddleware, secret=token_secret, open_paths={"/api/admin/login"})

    @app.post("/api/admin/login")
    async def admin_login(request: Request):
        body = await request.json()
        username = str(body.get("username") or "")
        password = str(body.get("password") or "")
        expected = accounts.get(username)
        if expected is None or not secrets.compare_digest(expected, password):
            logger.warning("store_login_rejected username=%s", username)
            return _error("Invalid credentials", status=401)
        return _ok({"token": issue_operator_token(token_secret, username)})

    @app.api_route("/uploads/{key}", methods=["GET", "HEAD"])
    async def read_upload(key: str):
        found = store.read_upload(key)
        if found is None:
            return Response(status_code=404)
        data, content_type = found
        return Response(content=data, media_type=content_type)

    @app.get("/api/products/getall")
    async def list_products():
        return _ok({"data": store.list_records("products")})

    @app.post("/api/products/add")
    async def add_product(request: Request):
        try:
            values, _kept, uploads = await _read_product_form(store, request)
            record = store.create_product(values, uploads)
        except StoreRejected as exc:
            return _error(exc.message, exc.status)
        logger.info("store_created collection=products id=%s images=%s", record["_id"], len(uploads))
        return _ok({"message": "Product added successfully", "data": record}, status=201)

    @app.put("/api/products/update/{record_id}")
    async def update_product(record_id: str, request: Request):
        if store.get_record("products", record_id) is None:
            return _error("Product not found", status=404)
        try:
            values, kept, uploads = await _read_product_form(store, request)
            record = store.update_product(record_id, values, kept, uploads)
        except StoreRejected as exc:
            return _error(exc.message, exc.status)
        logger.info("store_updated collection=products id=%s kept=%s new=%s", record_id, len(kept), len(uploads))
        return _ok({"message": "Product updated successfully", "data": record})

    @app.get("/api/categories/getall")
    async def list_categories():
        return _ok({"data": store.list_records("categories")})

    @app.post("/api/categories/add")
    async def add_category(request: Request):
        body = await request.json()
        try:
            record = store.create_category(str(body.get("name") or ""))
        except StoreRejected as exc:
            return _error(exc.message, exc.status)
        return _ok({"message": "Category added successfully", "data": record}, status=201)

    @app.put("/api/categories/update/{record_id}")
    async def update_category(record_id: str, request: Request):
        body = await request.json()
        try:
            record = store.update_category(record_id, str(body.get("name") or ""))
        except StoreRejected as exc:
            return _error(exc.message, exc.status)
        return _ok({"message": "Category updated successfully", "data": record})

    @app.get("/api/blogs/getall")
    async def list_blogs():
        return _ok({"posts": store.list_records("blogs")})

    @app.get("/api/contact/getallcontacts")
    async def list_contacts():
        return _ok({"data": store.list_records("contacts")})

    def _delete_route(collection: str, label: str):
        async def delete_record(record_id: str):
            if not store.delete_record(collection, record_id):
                return _error(f"{label} not found", status=404)
            logger.info("store_deleted collection=%s id=%s", collection, record_id)
            return _ok({"message": f"{label} deleted successfully"})

        return delete_record

    app.delete("/api/products/delete/{record_id}")(_delete_route("products", "Product"))
    app.delete("/api/categories/delete/{record_id}")(_delete_route("categories", "Category"))
    app.delete("/api/blogs/delete/{record_id}")(_delete_route("blogs", "Blog"))
    app.delete("/api/contact/delete/{record_id}")(_delete_route("contacts", "Contact"))

    return app
