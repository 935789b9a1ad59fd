"""Async client for one collection of the remote record store.

One request per operation. No retries and no caching: callers refetch the list
after every mutation.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from catalog.auth import OperatorSession
from catalog.errors import AuthRequired, NotFound, TransportError, UnsupportedOperation, ValidationRejected
from catalog.records import CollectionSpec, unwrap_list, unwrap_record
from catalog.submission import Payload

logger = logging.getLogger("catalog.sync")

_REJECT_STATUSES = (400, 409, 422)
_AUTH_STATUSES = (401, 403)


def _body(res: httpx.Response) -> Any:
    try:
        return res.json()
    except ValueError:
        return None


def _store_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class RecordSyncClient:
    def __init__(self, http: httpx.AsyncClient, spec: CollectionSpec, session: OperatorSession | None = None) -> None:
        self.http = http
        self.spec = spec
        self.session = session

    @property
    def collection(self) -> str:
        return self.spec.name

    def supports(self, operation: str) -> bool:
        return bool(getattr(self.spec, f"{operation}_path", None))

    def _path(self, operation: str, record_id: str | None = None) -> str:
        template = getattr(self.spec, f"{operation}_path", None)
        if not template:
            raise UnsupportedOperation(f"{self.spec.name} does not support {operation}", operation=operation)
        return template.format(id=record_id) if record_id is not None else template

    def _headers(self, mutating: bool) -> dict:
        if self.session is None:
            return {}
        if mutating:
            return self.session.headers()
        return self.session.headers() if self.session.is_active() else {}

    async def _send(self, method: str, path: str, record_id: str | None = None, payload: Payload | None = None) -> Any:
        kwargs: dict = {"headers": self._headers(method != "GET")}
        if payload is not None:
            if payload.json_body:
                kwargs["json"] = payload.json()
            else:
                kwargs["files"] = payload.multipart()
        try:
            res = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("store_request_failed method=%s path=%s error=%s", method, path, exc)
            raise TransportError(f"Could not reach the store: {exc}") from exc

        body = _body(res)
        status = res.status_code
        logger.info("store_request method=%s path=%s status=%s", method, path, status)
        if status == 404:
            raise NotFound(_store_message(body, f"{self.spec.name} not found"), record_id=record_id)
        if status in _AUTH_STATUSES:
            raise AuthRequired(_store_message(body, "Operator session rejected by the store"), status_code=status)
        if status in _REJECT_STATUSES:
            raise ValidationRejected(_store_message(body, f"Store rejected the {self.spec.name}"), status_code=status)
        if status >= 400:
            raise TransportError(_store_message(body, f"Store request failed with status {status}"), status_code=status)
        if isinstance(body, dict) and body.get("success") is False:
            raise ValidationRejected(_store_message(body, f"Store rejected the {self.spec.name}"), status_code=status)
        return body

    async def list(self) -> list:
        body = await self._send("GET", self.spec.list_path)
        raw = unwrap_list(body, self.spec.list_keys)
        if raw is None:
            raise TransportError(f"Unexpected {self.spec.name} list response", status_code=200)
        return self.spec.sort([self.spec.parse(item) for item in raw])

    async def create(self, payload: Payload):
        path = self._path("create")
        body = await self._send("POST", path, payload=payload)
        raw = unwrap_record(body)
        return self.spec.parse(raw) if raw is not None else None

    async def update(self, record_id: str, payload: Payload):
        path = self._path("update", record_id)
        body = await self._send("PUT", path, record_id=record_id, payload=payload)
        raw = unwrap_record(body)
        return self.spec.parse(raw) if raw is not None else None

    async def delete(self, record_id: str) -> str:
        path = self._path("delete", record_id)
        body = await self._send("DELETE", path, record_id=record_id)
        return _store_message(body, f"{self.spec.name} deleted")
