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

from catalog.attachments import AttachmentResolver, resolve_attachment_url
from catalog.config import DEFAULT_PLACEHOLDER_IMAGE
from catalog.models import ProductFields, ProductRecord


BASE = "http://store.test"


class TestResolveAttachmentUrl(unittest.TestCase):
    def test_joins_with_single_slash(self) -> None:
        self.assertEqual(resolve_attachment_url("/uploads/a.png", BASE + "/"), "http://store.test/uploads/a.png")
        self.assertEqual(resolve_attachment_url("uploads/a.png", BASE), "http://store.test/uploads/a.png")

    def test_absolute_passes_through(self) -> None:
        url = "https://cdn.example.com/a.png"
        self.assertEqual(resolve_attachment_url(url, BASE), url)

    def test_blank_uses_placeholder(self) -> None:
        self.assertEqual(resolve_attachment_url("  ", BASE), DEFAULT_PLACEHOLDER_IMAGE)
        self.assertEqual(resolve_attachment_url(None, BASE, placeholder="x.png"), "x.png")


class TestAttachmentResolver(unittest.IsolatedAsyncioTestCase):
    async def test_probe_falls_back_on_missing(self) -> None:
        def handler(request):
            self.assertEqual(request.method, "HEAD")
            status = 200 if request.url.path == "/uploads/ok.png" else 404
            return httpx.Response(status)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            resolver = AttachmentResolver(http, BASE)
            self.assertEqual(await resolver.probe("/uploads/ok.png"), "http://store.test/uploads/ok.png")
            self.assertEqual(await resolver.probe("/uploads/gone.png"), DEFAULT_PLACEHOLDER_IMAGE)
            record = ProductRecord(id="p1", fields=ProductFields())
            self.assertEqual(await resolver.product_image(record), DEFAULT_PLACEHOLDER_IMAGE)

    async def test_probe_transport_error(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            resolver = AttachmentResolver(http, BASE, placeholder="fallback.png")
            self.assertEqual(await resolver.probe("/uploads/a.png"), "fallback.png")


if __name__ == "__main__":
    unittest.main()
