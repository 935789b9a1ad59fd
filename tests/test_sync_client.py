import io
import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

import httpx
from PIL import Image

from catalog.auth import login
from catalog.config import DEFAULT_PLACEHOLDER_IMAGE, Settings, build_http_client
from catalog.drafts import CategoryDraft, ProductDraft
from catalog.errors import AuthRequired, NotFound, TransportError, UnsupportedOperation, ValidationRejected
from catalog.memory_store import create_store_app
from catalog.models import Ingredient, QueuedFile
from catalog.records import BLOGS, CATEGORIES, CONTACTS, PRODUCTS
from catalog.submission import encode
from catalog.sync_client import RecordSyncClient


STORE_URL = "http://store.test"


def _settings() -> Settings:
    return Settings(
        store_url=STORE_URL,
        http_timeout=5.0,
        placeholder_image=DEFAULT_PLACEHOLDER_IMAGE,
        preview_size=(160, 160),
        max_queued_images=None,
        login_path="/api/admin/login",
    )


def _png(name: str) -> QueuedFile:
    buf = io.BytesIO()
    Image.new("RGB", (24, 24), (10, 200, 10)).save(buf, format="PNG")
    return QueuedFile(filename=name, content=buf.getvalue(), content_type="image/png")


def _seed() -> dict:
    return {
        "products": [
            {
                "_id": "p1",
                "productName": "Napa",
                "genericName": "Paracetamol",
                "strength": "500mg",
                "category": "c1",
                "uses": ["Fever"],
                "productImage": ["/uploads/legacy_a.png", "/uploads/legacy_b.png"],
            }
        ],
        "categories": [{"_id": "c1", "name": "Analgesics"}],
        "blogs": [{"_id": "b1", "title": "Storage tips"}],
        "contacts": [
            {"_id": "m1", "fullName": "A", "createdAt": "2024-01-01T00:00:00Z"},
            {"_id": "m2", "fullName": "B", "createdAt": "2024-02-01T00:00:00Z"},
        ],
    }


def _valid_draft(name: str = "Ace") -> ProductDraft:
    draft = ProductDraft.create()
    draft.update_fields({"productName": name, "genericName": "Paracetamol", "strength": "500mg", "category": "c1"})
    draft.uses.update_at(0, "Fever")
    draft.composition.update_at(0, {"name": "Paracetamol", "strength": "500mg"})
    draft.composition.add(Ingredient())
    return draft


class TestSyncClientAgainstStore(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.app = create_store_app(seed=_seed())
        self.http = build_http_client(_settings(), transport=httpx.ASGITransport(app=self.app))
        self.products = RecordSyncClient(self.http, PRODUCTS)

    async def asyncTearDown(self) -> None:
        await self.http.aclose()

    async def test_list_products(self) -> None:
        items = await self.products.list()
        self.assertEqual([item.id for item in items], ["p1"])
        self.assertEqual(items[0].uses, ["Fever"])

    async def test_create_product_with_upload(self) -> None:
        draft = _valid_draft()
        draft.images.set_queued([_png("box.png")])
        record = await self.products.create(encode(draft))
        draft.close()
        self.assertEqual(record.fields.product_name, "Ace")
        self.assertEqual(record.composition, [Ingredient("Paracetamol", "500mg")])
        self.assertEqual(len(record.images), 1)
        self.assertTrue(record.images[0].startswith("/uploads/"))
        self.assertTrue(record.images[0].endswith("_box.png"))
        self.assertEqual(len(await self.products.list()), 2)

    async def test_update_reconciles_images(self) -> None:
        [current] = await self.products.list()
        draft = ProductDraft.hydrate(current)
        draft.images.remove_kept("/uploads/legacy_a.png")
        draft.images.set_queued([_png("new.png")])
        draft.set_field("brandName", "Napa")
        record = await self.products.update("p1", encode(draft))
        draft.close()
        self.assertEqual(record.fields.brand_name, "Napa")
        self.assertEqual(record.images[0], "/uploads/legacy_b.png")
        self.assertEqual(len(record.images), 2)
        self.assertNotIn("/uploads/legacy_a.png", record.images)

    async def test_update_missing_record(self) -> None:
        with self.assertRaises(NotFound) as ctx:
            await self.products.update("nope", encode(_valid_draft()))
        self.assertEqual(ctx.exception.record_id, "nope")
        self.assertTrue(ctx.exception.refresh_hint)

    async def test_duplicate_name_rejected_with_store_message(self) -> None:
        with self.assertRaises(ValidationRejected) as ctx:
            await self.products.create(encode(_valid_draft("Napa")))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Product with this name already exists")

    async def test_delete_then_not_found(self) -> None:
        message = await self.products.delete("p1")
        self.assertEqual(message, "Product deleted successfully")
        with self.assertRaises(NotFound):
            await self.products.delete("p1")

    async def test_categories_use_json_body(self) -> None:
        categories = RecordSyncClient(self.http, CATEGORIES)
        draft = CategoryDraft.create()
        draft.set_field("name", "Antibiotics")
        record = await categories.create(encode(draft))
        self.assertEqual(record.name, "Antibiotics")
        self.assertEqual(record.slug, "antibiotics")
        with self.assertRaises(ValidationRejected):
            await categories.create(encode(draft))

    async def test_blogs_and_contacts(self) -> None:
        blogs = await RecordSyncClient(self.http, BLOGS).list()
        self.assertEqual([b.title for b in blogs], ["Storage tips"])
        contacts = RecordSyncClient(self.http, CONTACTS)
        self.assertEqual([c.id for c in await contacts.list()], ["m2", "m1"])

    async def test_unsupported_operation_sends_nothing(self) -> None:
        contacts = RecordSyncClient(self.http, CONTACTS)
        self.assertFalse(contacts.supports("create"))
        with self.assertRaises(UnsupportedOperation) as ctx:
            await contacts.create(encode(_valid_draft()))
        self.assertEqual(ctx.exception.operation, "create")


class TestSyncClientAuth(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.app = create_store_app(seed=_seed(), secret="test-secret", require_auth=True, operators={"ops": "pw-1"})
        self.http = build_http_client(_settings(), transport=httpx.ASGITransport(app=self.app))

    async def asyncTearDown(self) -> None:
        await self.http.aclose()

    async def test_mutation_without_token_rejected(self) -> None:
        client = RecordSyncClient(self.http, PRODUCTS)
        with self.assertRaises(AuthRequired) as ctx:
            await client.delete("p1")
        self.assertEqual(ctx.exception.status_code, 401)

    async def test_login_then_mutate(self) -> None:
        session = await login(self.http, "ops", "pw-1")
        self.assertEqual(session.subject, "ops")
        client = RecordSyncClient(self.http, PRODUCTS, session=session)
        self.assertEqual(await client.delete("p1"), "Product deleted successfully")

    async def test_bad_credentials(self) -> None:
        with self.assertRaises(AuthRequired):
            await login(self.http, "ops", "wrong")

    async def test_reads_stay_open(self) -> None:
        items = await RecordSyncClient(self.http, PRODUCTS).list()
        self.assertEqual(len(items), 1)


class TestSyncClientFailures(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> RecordSyncClient:
        http = httpx.AsyncClient(base_url=STORE_URL, transport=httpx.MockTransport(handler))
        self.addAsyncCleanup(http.aclose)
        return RecordSyncClient(http, PRODUCTS)

    async def test_server_error(self) -> None:
        client = self._client(lambda request: httpx.Response(500, json={"message": "boom"}))
        with self.assertRaises(TransportError) as ctx:
            await client.list()
        self.assertEqual(ctx.exception.status_code, 500)

    async def test_connection_error(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = self._client(handler)
        with self.assertRaises(TransportError) as ctx:
            await client.delete("p1")
        self.assertIsNone(ctx.exception.status_code)

    async def test_success_false_body(self) -> None:
        client = self._client(lambda request: httpx.Response(200, json={"success": False, "message": "Invalid data"}))
        with self.assertRaises(ValidationRejected) as ctx:
            await client.create(encode(_valid_draft()))
        self.assertEqual(ctx.exception.message, "Invalid data")

    async def test_forbidden(self) -> None:
        client = self._client(lambda request: httpx.Response(403, json={"message": "Forbidden"}))
        with self.assertRaises(AuthRequired):
            await client.list()

    async def test_unexpected_list_shape(self) -> None:
        client = self._client(lambda request: httpx.Response(200, json={"items": []}))
        with self.assertRaises(TransportError):
            await client.list()

    async def test_create_without_echo_returns_none(self) -> None:
        client = self._client(lambda request: httpx.Response(201, json={"success": True, "message": "ok"}))
        self.assertIsNone(await client.create(encode(_valid_draft())))

    async def test_multipart_body(self) -> None:
        seen = {}

        def handler(request):
            seen["content_type"] = request.headers.get("content-type", "")
            seen["method"] = request.method
            return httpx.Response(200, json={"success": True, "data": {"_id": "p1"}})

        client = self._client(handler)
        await client.update("p1", encode(_valid_draft()))
        self.assertEqual(seen["method"], "PUT")
        self.assertTrue(seen["content_type"].startswith("multipart/form-data"))


if __name__ == "__main__":
    unittest.main()
