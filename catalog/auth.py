"""Operator sessions backed by store-issued bearer tokens.

The editor never checks credentials itself: `login` exchanges them with the
store for a token, and the store decides what that token may do. Claims are
read without verification only to avoid sending requests on an expired
session. `OperatorTokenMiddleware` is the store side of the same contract and
is used by the in-memory reference store.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx
from jose import jwt
from jose.exceptions import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from catalog.errors import AuthRequired, TransportError, ValidationRejected

logger = logging.getLogger("catalog.auth")

TOKEN_ALGORITHM = "HS256"


class OperatorSession:
    def __init__(self, token: str | None = None) -> None:
        self.token: str | None = None
        self.subject: str | None = None
        self.expires_at: float | None = None
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self.token = token
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            logger.warning("session_token_opaque")
            claims = {}
        self.subject = claims.get("sub")
        exp = claims.get("exp")
        self.expires_at = float(exp) if isinstance(exp, (int, float)) else None

    def clear(self) -> None:
        self.token = None
        self.subject = None
        self.expires_at = None

    def is_active(self, now: float | None = None) -> bool:
        if not self.token:
            return False
        if self.expires_at is None:
            return True
        return (now if now is not None else time.time()) < self.expires_at

    def headers(self) -> Dict[str, str]:
        if not self.is_active():
            raise AuthRequired("Operator session is missing or expired; please log in again")
        return {"Authorization": f"Bearer {self.token}"}

    def actor(self) -> dict | None:
        if not self.subject:
            return None
        return {"id": self.subject}


async def login(http: httpx.AsyncClient, username: str, password: str, login_path: str = "/api/admin/login") -> OperatorSession:
    try:
        res = await http.post(login_path, json={"username": username, "password": password})
    except httpx.HTTPError as exc:
        raise TransportError(f"Login request failed: {exc}") from exc
    if res.status_code in (401, 403):
        raise AuthRequired("Invalid admin credentials", status_code=res.status_code)
    if res.status_code >= 400:
        raise TransportError(f"Login failed with status {res.status_code}", status_code=res.status_code)
    try:
        body = res.json()
    except ValueError as exc:
        raise TransportError("Login response was not JSON", status_code=res.status_code) from exc
    token = body.get("token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token:
        raise ValidationRejected("Login response did not include a token", status_code=res.status_code)
    session = OperatorSession(token)
    logger.info("operator_login subject=%s", session.subject)
    return session


def issue_operator_token(secret: str, subject: str, ttl_seconds: int = 3600, now: float | None = None) -> str:
    issued = int(now if now is not None else time.time())
    claims = {"sub": subject, "iat": issued, "exp": issued + ttl_seconds, "role": "admin"}
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)


def verify_operator_token(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])


def _get_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def _auth_error(code: str, message: str, detail: dict | None = None) -> JSONResponse:
    return JSONResponse(
        {
            "success": False,
            "message": message,
            "errors": [{"code": code, "message": message, "path": "Authorization", "detail": detail}],
        },
        status_code=401,
    )


class OperatorTokenMiddleware(BaseHTTPMiddleware):
    """Require a valid operator token on mutating requests."""

    def __init__(self, app, secret: str, open_paths: set[str] | None = None) -> None:
        super().__init__(app)
        self._secret = secret
        self._open_paths = open_paths or set()

    async def dispatch(self, request: Request, call_next):
        if request.method in ("GET", "HEAD", "OPTIONS") or request.url.path in self._open_paths:
            return await call_next(request)

        token = _get_bearer_token(request)
        if not token:
            logger.warning("auth_missing_token path=%s", request.url.path)
            return _auth_error("AUTH_MISSING_TOKEN", "Missing bearer token")

        try:
            claims: Dict[str, Any] = verify_operator_token(token, self._secret)
        except JWTError as exc:
            logger.warning("auth_invalid_token path=%s error=%s", request.url.path, exc)
            return _auth_error("AUTH_INVALID_TOKEN", "Invalid bearer token", {"error": str(exc)})

        request.state.operator = {"id": claims.get("sub"), "role": claims.get("role")}
        return await call_next(request)
