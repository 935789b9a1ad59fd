"""Local preview handles for queued image attachments.

A preview is a Pillow thumbnail held in memory for as long as its file sits in
an image staging set. Handles are acquired from a `PreviewFactory` and must be
released explicitly; the factory keeps count of outstanding handles so a leak
shows up as a non-zero `outstanding()`.
"""

from __future__ import annotations

import io
import logging
import uuid
from typing import Tuple

from PIL import Image

from catalog.errors import UnsupportedImage
from catalog.models import QueuedFile

logger = logging.getLogger("catalog.previews")


class PreviewHandle:
    def __init__(self, factory: "PreviewFactory", filename: str, image: Image.Image) -> None:
        self._factory = factory
        self._image: Image.Image | None = image
        self.filename = filename
        self.token = f"preview://{uuid.uuid4()}"
        self.size = image.size

    @property
    def released(self) -> bool:
        return self._image is None

    def png_bytes(self) -> bytes:
        if self._image is None:
            raise RuntimeError(f"preview released: {self.token}")
        out_io = io.BytesIO()
        self._image.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()

    def release(self) -> None:
        if self._image is None:
            return
        self._image.close()
        self._image = None
        self._factory._forget(self)


class PreviewFactory:
    """Create thumbnails that fit within `max_size`, alpha flattened on `background`."""

    def __init__(self, max_size: Tuple[int, int] = (160, 160), background: Tuple[int, int, int] | None = None) -> None:
        self.max_size = max_size
        self.background = background or (255, 255, 255)
        self._live: dict[str, PreviewHandle] = {}

    def acquire(self, file: QueuedFile) -> PreviewHandle:
        try:
            with Image.open(io.BytesIO(file.content)) as opened:
                rgba = opened.convert("RGBA")
            rgba.thumbnail(self.max_size, Image.LANCZOS)
            flattened = Image.new("RGB", rgba.size, self.background)
            flattened.paste(rgba, mask=rgba.split()[3])
            rgba.close()
        except Exception as exc:
            raise UnsupportedImage(f"{file.filename} is not a supported image", filename=file.filename) from exc
        handle = PreviewHandle(self, file.filename, flattened)
        self._live[handle.token] = handle
        logger.debug("preview_acquired token=%s file=%s size=%sx%s", handle.token, file.filename, *handle.size)
        return handle

    def outstanding(self) -> int:
        return len(self._live)

    def _forget(self, handle: PreviewHandle) -> None:
        self._live.pop(handle.token, None)
        logger.debug("preview_released token=%s", handle.token)
