"""Error taxonomy for the catalog editor."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CatalogError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return self.message

    @property
    def code(self) -> str:
        return "CATALOG_ERROR"

    def as_issue(self, path: str | None = None) -> dict:
        return {"code": self.code, "message": self.message, "path": path, "detail": None}


@dataclass
class IndexOutOfRange(CatalogError, IndexError):
    index: int = 0
    length: int = 0

    @property
    def code(self) -> str:
        return "INDEX_OUT_OF_RANGE"


@dataclass
class UnknownField(CatalogError):
    field: str = ""

    @property
    def code(self) -> str:
        return "UNKNOWN_FIELD"


@dataclass
class FieldTypeError(CatalogError):
    field: str = ""

    @property
    def code(self) -> str:
        return "TYPE_MISMATCH"


@dataclass
class ValidationError(CatalogError):
    fields: list[str] = field(default_factory=list)
    issues: list[dict] = field(default_factory=list)

    @property
    def code(self) -> str:
        return "VALIDATION_FAILED"


@dataclass
class UnsupportedImage(CatalogError):
    filename: str | None = None

    @property
    def code(self) -> str:
        return "UNSUPPORTED_IMAGE"


@dataclass
class TooManyImages(CatalogError):
    limit: int = 0

    @property
    def code(self) -> str:
        return "TOO_MANY_IMAGES"


@dataclass
class SubmissionInFlight(CatalogError):
    @property
    def code(self) -> str:
        return "SUBMIT_IN_FLIGHT"


@dataclass
class TransportError(CatalogError):
    status_code: int | None = None

    @property
    def code(self) -> str:
        return "TRANSPORT_ERROR"


@dataclass
class ValidationRejected(CatalogError):
    status_code: int | None = None

    @property
    def code(self) -> str:
        return "VALIDATION_REJECTED"


@dataclass
class NotFound(CatalogError):
    record_id: str | None = None
    refresh_hint: bool = True

    @property
    def code(self) -> str:
        return "NOT_FOUND"


@dataclass
class AuthRequired(CatalogError):
    status_code: int | None = None

    @property
    def code(self) -> str:
        return "AUTH_REQUIRED"


@dataclass
class UnsupportedOperation(CatalogError):
    operation: str = ""

    @property
    def code(self) -> str:
        return "UNSUPPORTED_OPERATION"
