"""Image staging: kept attachment references plus queued uploads with previews."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from catalog.errors import IndexOutOfRange, TooManyImages
from catalog.models import QueuedFile
from catalog.previews import PreviewFactory, PreviewHandle

logger = logging.getLogger("catalog.previews")


class ImageStagingSet:
    """Tracks which persisted images stay and which new files will be uploaded.

    `kept` only ever shrinks after `init_from_existing`. `queued` is replaced
    wholesale by `set_queued`; every queued file owns one preview handle, and
    handles are released synchronously whenever their file leaves the queue.
    """

    def __init__(self, previews: PreviewFactory | None = None, max_queued: int | None = None) -> None:
        self._previews = previews or PreviewFactory()
        self._max_queued = max_queued
        self._kept: list[str] = []
        self._queued: list[QueuedFile] = []
        self._handles: list[PreviewHandle] = []

    def __enter__(self) -> "ImageStagingSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    @property
    def kept(self) -> list[str]:
        return list(self._kept)

    @property
    def queued(self) -> list[QueuedFile]:
        return list(self._queued)

    @property
    def previews(self) -> list[PreviewHandle]:
        return list(self._handles)

    def init_from_existing(self, refs: Iterable[str]) -> None:
        self._release_all()
        self._queued = []
        self._kept = list(dict.fromkeys(ref for ref in refs if ref))

    def remove_kept(self, ref: str) -> bool:
        if ref not in self._kept:
            return False
        self._kept = [r for r in self._kept if r != ref]
        return True

    def set_queued(self, files: Sequence[QueuedFile]) -> None:
        files = list(files)
        if self._max_queued is not None and len(files) > self._max_queued:
            raise TooManyImages(f"at most {self._max_queued} images can be uploaded at once", limit=self._max_queued)
        acquired: list[PreviewHandle] = []
        try:
            for file in files:
                acquired.append(self._previews.acquire(file))
        except Exception:
            for handle in acquired:
                handle.release()
            raise
        self._release_all()
        self._queued = files
        self._handles = acquired
        logger.info("images_queued count=%s", len(files))

    def remove_queued_at(self, index: int) -> QueuedFile:
        if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index >= len(self._queued):
            raise IndexOutOfRange(
                f"queued images: index {index} out of range for {len(self._queued)} files",
                index=index,
                length=len(self._queued),
            )
        handle = self._handles.pop(index)
        handle.release()
        return self._queued.pop(index)

    def dispose(self) -> None:
        self._release_all()
        self._queued = []

    def snapshot(self) -> dict:
        return {
            "kept": list(self._kept),
            "queued": [file.describe() for file in self._queued],
        }

    def _release_all(self) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            handle.release()
