from __future__ import annotations

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from PIL import Image, UnidentifiedImageError

from mask_compositor.exceptions import DecodeError, EncodeError
from mask_compositor.imaging.geometry import CropRectangle


@dataclass(frozen=True, slots=True)
class DecodedImage:
    """Backend pixel handle plus the metadata the compositor needs.

    ``width``/``height`` are ``None`` when the backend could not determine them.
    """

    pixels: Any
    width: int | None
    height: int | None
    has_alpha: bool


class ImageCodec(ABC):
    @abstractmethod
    def decode(self, data: bytes) -> DecodedImage:
        raise NotImplementedError

    @abstractmethod
    def size(self, pixels: Any) -> tuple[int, int] | None:
        raise NotImplementedError

    @abstractmethod
    def crop(self, pixels: Any, rect: CropRectangle) -> Any:
        raise NotImplementedError

    @abstractmethod
    def resize(self, pixels: Any, width: int, height: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def composite(self, base: Any, overlay: Any, x: int, y: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def encode(self, pixels: Any, quality: int) -> bytes:
        raise NotImplementedError


class PillowCodec(ImageCodec):
    """Pillow backend: RGBA working buffers, Lanczos resampling, JPEG output."""

    def decode(self, data: bytes) -> DecodedImage:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                has_alpha = image.mode in {"RGBA", "LA", "PA"} or "transparency" in image.info
                pixels = image.convert("RGBA")
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"Unable to decode image: {exc}") from exc
        width, height = pixels.size
        return DecodedImage(pixels=pixels, width=width, height=height, has_alpha=has_alpha)

    def size(self, pixels: Image.Image) -> tuple[int, int]:
        return pixels.size

    def crop(self, pixels: Image.Image, rect: CropRectangle) -> Image.Image:
        return pixels.crop(rect.box)

    def resize(self, pixels: Image.Image, width: int, height: int) -> Image.Image:
        # Pillow premultiplies RGBA before filtering, so transparent edges stay clean.
        return pixels.resize((width, height), Image.Resampling.LANCZOS)

    def composite(self, base: Image.Image, overlay: Image.Image, x: int, y: int) -> Image.Image:
        canvas = base.convert("RGBA")
        visible_left = max(0, x)
        visible_top = max(0, y)
        visible_right = min(canvas.width, x + overlay.width)
        visible_bottom = min(canvas.height, y + overlay.height)
        if visible_right <= visible_left or visible_bottom <= visible_top:
            return canvas

        # Overlay pixels outside the canvas are dropped.
        visible = overlay.convert("RGBA").crop(
            (visible_left - x, visible_top - y, visible_right - x, visible_bottom - y)
        )
        canvas.alpha_composite(visible, dest=(visible_left, visible_top))
        return canvas

    def encode(self, pixels: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        try:
            pixels.convert("RGB").save(buffer, format="JPEG", quality=quality)
        except (OSError, ValueError) as exc:
            raise EncodeError(f"Unable to encode JPEG output: {exc}") from exc
        return buffer.getvalue()
