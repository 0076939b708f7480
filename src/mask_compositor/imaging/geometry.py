"""Dimension-only geometry for the compositor.

Nothing here touches pixels: given the source, target and overlay sizes it
computes where to crop the source and where to place the resized overlay on
the canvas.  All rounding uses ``math.floor`` on double-precision values.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from mask_compositor.exceptions import InvalidFormatError


@dataclass(frozen=True, slots=True)
class CropRectangle:
    left: int
    top: int
    width: int
    height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        return self.left, self.top, self.left + self.width, self.top + self.height

    def fits_within(self, width: int, height: int) -> bool:
        return (
            self.left >= 0
            and self.top >= 0
            and self.width > 0
            and self.height > 0
            and self.left + self.width <= width
            and self.top + self.height <= height
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class OverlayPlacement:
    left: int
    top: int
    width: int
    height: int

    def to_dict(self) -> dict:
        return asdict(self)


def _require_positive(**dimensions: float) -> None:
    invalid = [f"{name}={value}" for name, value in dimensions.items() if value <= 0]
    if invalid:
        raise InvalidFormatError("Dimensions must be positive: " + ", ".join(invalid))


def compute_crop_rectangle(
    source_width: int,
    source_height: int,
    target_width: int,
    target_height: int,
) -> CropRectangle:
    _require_positive(
        source_width=source_width,
        source_height=source_height,
        target_width=target_width,
        target_height=target_height,
    )

    target_aspect = target_width / target_height
    source_aspect = source_width / source_height

    if source_aspect > target_aspect:
        # Source is wider: keep full height, trim the sides.
        crop_height = source_height
        crop_width = math.floor(source_height * target_aspect)
        crop_left = math.floor((source_width - crop_width) / 2)
        crop_top = 0
    else:
        crop_width = source_width
        crop_height = math.floor(source_width / target_aspect)
        crop_left = 0
        crop_top = math.floor((source_height - crop_height) / 2)

    if crop_width <= 0 or crop_height <= 0:
        raise InvalidFormatError(
            f"Degenerate crop {crop_width}x{crop_height} for source {source_width}x{source_height} "
            f"and target {target_width}x{target_height}"
        )

    return CropRectangle(left=crop_left, top=crop_top, width=crop_width, height=crop_height)


def compute_overlay_placement(
    target_width: int,
    target_height: int,
    overlay_width: int,
    overlay_height: int,
    scale: float,
) -> OverlayPlacement:
    """Size the overlay relative to the canvas width and anchor it bottom-center.

    The overlay keeps its own aspect ratio.  When it ends up taller than the
    canvas the top clamps to 0 and the overflow is left for the compositing
    step to drop.
    """
    _require_positive(
        target_width=target_width,
        target_height=target_height,
        overlay_width=overlay_width,
        overlay_height=overlay_height,
        scale=scale,
    )

    width = math.floor(target_width * scale)
    aspect = overlay_height / overlay_width
    height = math.floor(width * aspect)
    if width <= 0 or height <= 0:
        raise InvalidFormatError(
            f"Overlay {overlay_width}x{overlay_height} at scale {scale} collapses to {width}x{height}"
        )

    left = math.floor((target_width - width) / 2)
    top = max(0, target_height - height)
    return OverlayPlacement(left=left, top=top, width=width, height=height)


def compute_geometry(
    source_size: tuple[int, int],
    target_size: tuple[int, int],
    overlay_size: tuple[int, int],
    scale: float,
) -> tuple[CropRectangle, OverlayPlacement]:
    target_width, target_height = target_size
    crop = compute_crop_rectangle(*source_size, target_width, target_height)
    placement = compute_overlay_placement(target_width, target_height, *overlay_size, scale)
    return crop, placement
