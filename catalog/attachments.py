"""Resolution of stored attachment references to displayable URLs."""

from __future__ import annotations

import logging

import httpx

from catalog.config import DEFAULT_PLACEHOLDER_IMAGE
from catalog.models import ProductRecord

logger = logging.getLogger("catalog.attachments")


def is_absolute(ref: str) -> bool:
    return ref.startswith("http://") or ref.startswith("https://")


def resolve_attachment_url(ref: str | None, base_url: str, placeholder: str = DEFAULT_PLACEHOLDER_IMAGE) -> str:
    ref = (ref or "").strip()
    if not ref:
        return placeholder
    if is_absolute(ref):
        return ref
    return f"{base_url.rstrip('/')}/{ref.lstrip('/')}"


def primary_image_ref(record: ProductRecord) -> str | None:
    return record.images[0] if record.images else None


class AttachmentResolver:
    """Resolve references and fall back to the placeholder when a HEAD probe fails."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, placeholder: str = DEFAULT_PLACEHOLDER_IMAGE) -> None:
        self.http = http
        self.base_url = base_url
        self.placeholder = placeholder

    def url(self, ref: str | None) -> str:
        return resolve_attachment_url(ref, self.base_url, self.placeholder)

    async def probe(self, ref: str | None) -> str:
        url = self.url(ref)
        if url == self.placeholder:
            return url
        try:
            res = await self.http.head(url)
        except httpx.HTTPError as exc:
            logger.warning("attachment_probe_failed url=%s error=%s", url, exc)
            return self.placeholder
        if res.status_code >= 400:
            logger.info("attachment_missing url=%s status=%s", url, res.status_code)
            return self.placeholder
        return url

    async def product_image(self, record: ProductRecord) -> str:
        return await self.probe(primary_image_ref(record))
