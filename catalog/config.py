"""Environment-driven settings for the catalog editor."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import httpx


DEFAULT_PLACEHOLDER_IMAGE = "https://via.placeholder.com/600x600.png?text=No+Image"


def _store_url() -> str:
    return (os.getenv("CATALOG_STORE_URL") or "http://localhost:5000").strip().rstrip("/")


def _http_timeout() -> float:
    return float(os.getenv("CATALOG_HTTP_TIMEOUT", "30"))


def _placeholder_image() -> str:
    return (os.getenv("CATALOG_PLACEHOLDER_IMAGE") or DEFAULT_PLACEHOLDER_IMAGE).strip()


def _preview_size() -> tuple[int, int]:
    raw = (os.getenv("CATALOG_PREVIEW_SIZE") or "160x160").strip().lower()
    width, _, height = raw.partition("x")
    try:
        return int(width), int(height or width)
    except ValueError as exc:
        raise ValueError(f"CATALOG_PREVIEW_SIZE must look like 160x160, got {raw!r}") from exc


def _max_queued_images() -> int | None:
    raw = (os.getenv("CATALOG_MAX_QUEUED_IMAGES") or "").strip()
    if not raw or raw == "0":
        return None
    return int(raw)


def _login_path() -> str:
    return (os.getenv("CATALOG_LOGIN_PATH") or "/api/admin/login").strip()


@dataclass(frozen=True)
class Settings:
    store_url: str
    http_timeout: float
    placeholder_image: str
    preview_size: tuple[int, int]
    max_queued_images: int | None
    login_path: str


def load_settings() -> Settings:
    return Settings(
        store_url=_store_url(),
        http_timeout=_http_timeout(),
        placeholder_image=_placeholder_image(),
        preview_size=_preview_size(),
        max_queued_images=_max_queued_images(),
        login_path=_login_path(),
    )


def configure_logging() -> None:
    level = (os.getenv("CATALOG_LOG_LEVEL") or "INFO").strip().upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO))


def build_http_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    headers = {"Accept": "application/json"}
    return httpx.AsyncClient(
        base_url=settings.store_url,
        timeout=settings.http_timeout,
        headers=headers,
        transport=transport,
    )
