"""Summary counts for the admin landing page."""

from __future__ import annotations

import asyncio
import logging

from notices import NoticeBoard

from catalog.errors import CatalogError
from catalog.sync_client import RecordSyncClient

logger = logging.getLogger("catalog.dashboard")

RECENT_CONTACTS = 5


async def load_dashboard(
    products: RecordSyncClient,
    blogs: RecordSyncClient,
    contacts: RecordSyncClient,
    notices: NoticeBoard | None = None,
) -> dict:
    try:
        product_items, blog_items, contact_items = await asyncio.gather(
            products.list(), blogs.list(), contacts.list()
        )
    except CatalogError as exc:
        logger.warning("dashboard_load_failed code=%s", exc.code)
        if notices is not None:
            notices.post("error", exc.code, f"Failed to load dashboard data: {exc.message}")
        return {"ok": False, "errors": [exc.as_issue()]}

    recent = contacts.spec.sort(list(contact_items))[:RECENT_CONTACTS]
    return {
        "ok": True,
        "counts": {
            "products": len(product_items),
            "blogs": len(blog_items),
            "contacts": len(contact_items),
        },
        "recent_contacts": recent,
    }
