from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from mask_compositor.exceptions import AssetNotFoundError, DecodeError, InvalidFormatError
from mask_compositor.imaging.codec import ImageCodec, PillowCodec
from mask_compositor.imaging.geometry import CropRectangle, OverlayPlacement, compute_geometry
from mask_compositor.models.formats import CompositorConfig, TargetFormat


@dataclass(frozen=True, slots=True)
class OverlayInput:
    """Already-resolved overlay bytes; ``scale=None`` means the configured default."""

    data: bytes
    scale: float | None = None


@dataclass(frozen=True, slots=True)
class SourceImage:
    pixels: Any
    width: int
    height: int
    has_alpha: bool
    used_fallback_size: bool = False


@dataclass(frozen=True, slots=True)
class OverlayAsset:
    pixels: Any
    width: int
    height: int
    has_alpha: bool
    scale: float


@dataclass(frozen=True, slots=True)
class ProcessingFacts:
    source_width: int
    source_height: int
    used_fallback_size: bool
    target_width: int
    target_height: int
    target_kind: str
    overlay_width: int
    overlay_height: int
    overlay_has_alpha: bool
    scale: float
    quality: int
    crop: CropRectangle
    placement: OverlayPlacement

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class OutputImage:
    data: bytes
    facts: ProcessingFacts


class Compositor:
    """Stateless crop, resize, overlay and encode pipeline.

    One instance can serve concurrent calls: it keeps no per-call state and
    never mutates the overlay it is handed.
    """

    def __init__(self, config: CompositorConfig | None = None, codec: ImageCodec | None = None) -> None:
        self.config = config or CompositorConfig()
        self.codec = codec or PillowCodec()

    def decode_source(self, data: bytes) -> SourceImage:
        decoded = self.codec.decode(data)
        width, height = decoded.width, decoded.height
        used_fallback = not width or not height
        if used_fallback:
            width = width or self.config.fallback_width
            height = height or self.config.fallback_height
        return SourceImage(
            pixels=decoded.pixels,
            width=width,
            height=height,
            has_alpha=decoded.has_alpha,
            used_fallback_size=used_fallback,
        )

    def decode_overlay(self, overlay: OverlayInput) -> OverlayAsset:
        if not overlay.data:
            raise AssetNotFoundError("Overlay bytes are empty")
        decoded = self.codec.decode(overlay.data)
        if not decoded.width or not decoded.height:
            raise DecodeError("Overlay dimensions could not be determined")
        scale = overlay.scale or self.config.default_scale
        return OverlayAsset(
            pixels=decoded.pixels,
            width=decoded.width,
            height=decoded.height,
            has_alpha=decoded.has_alpha,
            scale=scale,
        )

    def crop_and_resize(self, source: SourceImage, crop: CropRectangle, target: TargetFormat) -> Any:
        if not crop.fits_within(source.width, source.height):
            raise InvalidFormatError(
                f"Crop rectangle {crop} falls outside source {source.width}x{source.height}"
            )
        if source.used_fallback_size:
            # Fallback dimensions are a guess; the pixels must still cover the crop.
            actual = self.codec.size(source.pixels)
            if actual is not None and not crop.fits_within(*actual):
                raise InvalidFormatError(
                    f"Crop rectangle {crop} falls outside decoded pixels {actual[0]}x{actual[1]}"
                )
        cropped = self.codec.crop(source.pixels, crop)
        return self.codec.resize(cropped, target.width, target.height)

    def resize_overlay(self, overlay: OverlayAsset, placement: OverlayPlacement) -> Any:
        return self.codec.resize(overlay.pixels, placement.width, placement.height)

    def composite_and_encode(self, canvas: Any, overlay: Any, placement: OverlayPlacement) -> bytes:
        composed = self.codec.composite(canvas, overlay, placement.left, placement.top)
        return self.codec.encode(composed, self.config.quality)

    def process_image(self, source_bytes: bytes, overlay: OverlayInput, target: TargetFormat) -> OutputImage:
        source = self.decode_source(source_bytes)
        asset = self.decode_overlay(overlay)

        crop, placement = compute_geometry(
            (source.width, source.height),
            (target.width, target.height),
            (asset.width, asset.height),
            asset.scale,
        )

        canvas = self.crop_and_resize(source, crop, target)
        resized_overlay = self.resize_overlay(asset, placement)
        data = self.composite_and_encode(canvas, resized_overlay, placement)

        facts = ProcessingFacts(
            source_width=source.width,
            source_height=source.height,
            used_fallback_size=source.used_fallback_size,
            target_width=target.width,
            target_height=target.height,
            target_kind=target.kind,
            overlay_width=asset.width,
            overlay_height=asset.height,
            overlay_has_alpha=asset.has_alpha,
            scale=asset.scale,
            quality=self.config.quality,
            crop=crop,
            placement=placement,
        )
        return OutputImage(data=data, facts=facts)


def process_image(
    source_bytes: bytes,
    overlay: OverlayInput,
    target: TargetFormat,
    config: CompositorConfig | None = None,
) -> OutputImage:
    return Compositor(config).process_image(source_bytes, overlay, target)
