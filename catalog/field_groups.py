"""Repeatable field groups: ordered, homogeneous, never empty."""

from __future__ import annotations

import dataclasses
from typing import Any, Generic, Iterable, Iterator, Mapping, TypeVar

from catalog.errors import FieldTypeError, IndexOutOfRange, UnknownField


T = TypeVar("T")


def is_blank_entry(entry: Any) -> bool:
    """An entry is blank when every string it holds is empty after trimming."""
    if isinstance(entry, str):
        return not entry.strip()
    if dataclasses.is_dataclass(entry):
        for f in dataclasses.fields(entry):
            value = getattr(entry, f.name)
            if isinstance(value, str) and value.strip():
                return False
        return True
    return entry is None


class FieldGroup(Generic[T]):
    """Ordered list of string or frozen-record entries.

    The group never holds zero entries: seeding with nothing, or removing the
    last entry, leaves one `empty` entry in place.
    """

    def __init__(self, name: str, empty: T, entries: Iterable[T] | None = None) -> None:
        if not isinstance(empty, str) and not dataclasses.is_dataclass(empty):
            raise TypeError("empty entry must be a string or a frozen dataclass instance")
        self.name = name
        self._empty = empty
        self._entries: list[T] = []
        self.reset(entries or [])

    @property
    def empty(self) -> T:
        return self._empty

    @property
    def is_record_shaped(self) -> bool:
        return not isinstance(self._empty, str)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._entries))

    def __getitem__(self, index: int) -> T:
        self._check_index(index)
        return self._entries[index]

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"FieldGroup({self.name!r}, {self._entries!r})"

    def entries(self) -> list[T]:
        return list(self._entries)

    def reset(self, entries: Iterable[T]) -> None:
        seeded = [self._coerce(entry) for entry in entries]
        self._entries = seeded or [self._empty]

    def add(self, entry: T | None = None) -> int:
        self._entries.append(self._empty if entry is None else self._coerce(entry))
        return len(self._entries) - 1

    def update_at(self, index: int, patch: Any = None, **changes: Any) -> T:
        self._check_index(index)
        current = self._entries[index]
        if self.is_record_shaped:
            merged: dict = {}
            if patch is not None:
                if not isinstance(patch, Mapping):
                    raise FieldTypeError(f"{self.name} entries are updated with a mapping", field=self.name)
                merged.update(patch)
            merged.update(changes)
            allowed = {f.name for f in dataclasses.fields(current)}
            for key, value in merged.items():
                if key not in allowed:
                    raise UnknownField(f"Unknown field: {self.name}.{key}", field=f"{self.name}.{key}")
                if not isinstance(value, str):
                    raise FieldTypeError(f"{self.name}.{key} must be a str", field=f"{self.name}.{key}")
            updated = dataclasses.replace(current, **merged)
        else:
            if changes or not isinstance(patch, str):
                raise FieldTypeError(f"{self.name} entries are plain strings", field=self.name)
            updated = patch
        self._entries[index] = updated
        return updated

    def remove_at(self, index: int) -> None:
        self._check_index(index)
        if len(self._entries) == 1:
            self._entries[0] = self._empty
            return
        del self._entries[index]

    def non_blank(self) -> list[T]:
        return [entry for entry in self._entries if not is_blank_entry(entry)]

    def has_content(self) -> bool:
        return any(not is_blank_entry(entry) for entry in self._entries)

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError("index must be an int")
        if index < 0 or index >= len(self._entries):
            raise IndexOutOfRange(
                f"{self.name}: index {index} out of range for {len(self._entries)} entries",
                index=index,
                length=len(self._entries),
            )

    def _coerce(self, entry: Any) -> T:
        if self.is_record_shaped:
            if isinstance(entry, type(self._empty)):
                return entry
            if isinstance(entry, Mapping):
                allowed = {f.name for f in dataclasses.fields(self._empty)}
                for key in entry:
                    if key not in allowed:
                        raise UnknownField(f"Unknown field: {self.name}.{key}", field=f"{self.name}.{key}")
                return dataclasses.replace(self._empty, **dict(entry))
            raise FieldTypeError(f"{self.name} entries must be {type(self._empty).__name__}", field=self.name)
        if not isinstance(entry, str):
            raise FieldTypeError(f"{self.name} entries must be str", field=self.name)
        return entry
