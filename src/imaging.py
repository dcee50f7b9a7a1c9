"""
Image-processing capability used by the hasher.

The hasher only needs to load/decode images, read their size, crop regions
and release handles. PillowProcessor provides that on top of Pillow; tests
and alternative backends can supply anything matching ImageProcessor.
"""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Any, Protocol, Tuple, Union

from PIL import Image

from errors import UnreadableImageError
from logs import get_logger

log = get_logger("imghash.imaging")

PathLike = Union[str, os.PathLike]


class ImageProcessor(Protocol):
    def is_image(self, obj: Any) -> bool: ...

    def load(self, path: PathLike) -> Any: ...

    def decode(self, data: bytes) -> Any: ...

    def dimensions(self, image: Any) -> Tuple[int, int]: ...

    def crop(self, image: Any, x: int, y: int, w: int, h: int) -> Any: ...

    def release(self, image: Any) -> None: ...


class PillowProcessor:
    """ImageProcessor backed by Pillow. Handles are PIL.Image.Image objects."""

    def is_image(self, obj: Any) -> bool:
        return isinstance(obj, Image.Image)

    def load(self, path: PathLike) -> Image.Image:
        """
        Read and decode an image file.

        Raises:
            UnreadableImageError: if the file cannot be read or decoded, or if
                path is raw bytes (use decode for in-memory data).
        """
        if isinstance(path, (bytes, bytearray, memoryview)):
            raise UnreadableImageError(
                "Expected a file path, got raw bytes; use hash_from_bytes for image data"
            )
        p = Path(path)
        try:
            data = p.read_bytes()
        except OSError as exc:
            raise UnreadableImageError(f"Unable to load file: {p}") from exc
        try:
            return self.decode(data)
        except UnreadableImageError as exc:
            raise UnreadableImageError(f"Unable to load file: {p}") from exc

    def decode(self, data: bytes) -> Image.Image:
        """
        Decode in-memory image bytes. Pixel data is loaded eagerly so that
        truncated or corrupt input fails here and not while hashing.

        Raises:
            UnreadableImageError: on malformed input.
        """
        try:
            im = Image.open(io.BytesIO(data))
        except (OSError, ValueError, SyntaxError) as exc:
            raise UnreadableImageError("Unable to decode image data") from exc
        try:
            im.load()
        except (OSError, ValueError, SyntaxError) as exc:
            im.close()
            raise UnreadableImageError("Unable to decode image data") from exc
        log.debug(f"decoded {im.format} image {im.size[0]}x{im.size[1]}")
        return im

    def dimensions(self, image: Image.Image) -> Tuple[int, int]:
        return image.size

    def crop(self, image: Image.Image, x: int, y: int, w: int, h: int) -> Image.Image:
        return image.crop((x, y, x + w, y + h))

    def release(self, image: Image.Image) -> None:
        # Image.close() tolerates repeated calls.
        image.close()
