from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from mask_compositor.assets.masks import MaskCatalog, default_catalog, load_mask_catalog, load_overlay, select_mask
from mask_compositor.config_loader import load_compositor_config
from mask_compositor.exceptions import ConfigurationError, InvalidFormatError
from mask_compositor.imaging.compositor import Compositor, OutputImage
from mask_compositor.models.formats import OUTPUT_FORMATS, CompositorConfig, MaskOption, TargetFormat
from mask_compositor.output.metrics import Timer
from mask_compositor.output.writer import save_bytes, write_json

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunConfig:
    input_path: Path
    output_path: Path
    format_kind: str = "square"
    mask_id: str | None = None
    masks_path: Path | None = None
    config_path: Path | None = None
    report_path: Path | None = None
    width: int | None = None
    height: int | None = None


def resolve_target_format(format_kind: str, width: int | None = None, height: int | None = None) -> TargetFormat:
    if width is not None or height is not None:
        if width is None or height is None:
            raise ConfigurationError("Custom size needs both width and height")
        try:
            return TargetFormat(width=width, height=height, kind="custom")
        except ValidationError as exc:
            raise InvalidFormatError(f"Invalid target size {width}x{height}") from exc

    target = OUTPUT_FORMATS.get(format_kind)
    if target is None:
        raise ConfigurationError(
            f"Unknown format: {format_kind}. Choose one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return target


def _resolve_catalog(masks_path: Path | None) -> MaskCatalog:
    if masks_path is None:
        return default_catalog()
    return load_mask_catalog(masks_path)


def compose(
    source_bytes: bytes,
    target: TargetFormat,
    mask: MaskOption,
    config: CompositorConfig | None = None,
) -> OutputImage:
    """Run the compositor for one resolved mask and log the computed geometry."""
    overlay = load_overlay(mask)
    result = Compositor(config).process_image(source_bytes, overlay, target)

    facts = result.facts
    logger.info("Original image: %sx%s", facts.source_width, facts.source_height)
    if facts.used_fallback_size:
        logger.warning("Source size unavailable, assumed %sx%s", facts.source_width, facts.source_height)
    logger.info("Target format: %sx%s (%s)", facts.target_width, facts.target_height, facts.target_kind)
    logger.info(
        "Crop rectangle: %s, %s (%sx%s)",
        facts.crop.left,
        facts.crop.top,
        facts.crop.width,
        facts.crop.height,
    )
    logger.info(
        "Mask positioned at: %s, %s (%sx%s)",
        facts.placement.left,
        facts.placement.top,
        facts.placement.width,
        facts.placement.height,
    )
    return result


def run_job(config: RunConfig) -> dict:
    timer = Timer()
    if not config.input_path.is_file():
        raise ConfigurationError(f"Input image not found: {config.input_path}")

    target = resolve_target_format(config.format_kind, config.width, config.height)
    catalog = _resolve_catalog(config.masks_path)
    mask = select_mask(catalog, config.mask_id or target.kind)
    compositor_config = load_compositor_config(config.config_path)

    result = compose(config.input_path.read_bytes(), target, mask, compositor_config)
    save_bytes(result.data, config.output_path)

    report = {
        "input": str(config.input_path),
        "output": str(config.output_path),
        "mask_id": mask.id,
        "output_bytes": len(result.data),
        "execution_time_seconds": round(timer.elapsed(), 3),
        **result.facts.to_dict(),
    }
    if config.report_path is not None:
        write_json(report, config.report_path)

    logger.info("Successfully created %s format image: %sx%s", target.kind, target.width, target.height)
    return report
