from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from mask_compositor.exceptions import AssetNotFoundError
from mask_compositor.imaging.compositor import OverlayInput
from mask_compositor.models.formats import MaskOption

logger = logging.getLogger(__name__)

# Bundled masks shipped in assets/masks/, resolved relative to this module file
BUNDLED_MASKS_DIR = Path(__file__).resolve().parents[3] / "assets" / "masks"

MIN_VALID_EXAMPLE_YAML = """masks:
  - id: "1"
    name: "Default frame"
    path: masks/1.png
    scale: 1
"""


class CatalogValidationError(ValueError):
    pass


class MaskCatalog(BaseModel):
    masks: list[MaskOption] = Field(min_length=1)


def default_catalog() -> MaskCatalog:
    return MaskCatalog(
        masks=[MaskOption(id="1", name="1", path=str(BUNDLED_MASKS_DIR / "1.png"), scale=1)]
    )


def _parse_catalog_file(catalog_path: Path) -> dict[str, Any]:
    suffix = catalog_path.suffix.lower()
    content = catalog_path.read_text(encoding="utf-8")

    if suffix in {".yaml", ".yml"}:
        parsed = yaml.safe_load(content)
    elif suffix == ".json":
        parsed = json.loads(content)
    else:
        raise CatalogValidationError(
            "Unsupported mask catalog format. Use .yaml, .yml, or .json files.\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        )

    if not isinstance(parsed, dict):
        raise CatalogValidationError(
            "Mask catalog root must be an object/map.\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        )
    return parsed


def load_mask_catalog(catalog_path: Path) -> MaskCatalog:
    """Load a mask catalog, resolving relative mask paths against the catalog's folder."""
    if not catalog_path.exists():
        raise CatalogValidationError(f"Mask catalog not found: {catalog_path}")

    try:
        parsed = _parse_catalog_file(catalog_path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CatalogValidationError(
            f"Unable to parse mask catalog: {exc}\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        ) from exc

    try:
        catalog = MaskCatalog.model_validate(parsed)
    except ValidationError as exc:
        errors = []
        for item in exc.errors():
            location = ".".join(str(part) for part in item["loc"])
            errors.append(f"- {location}: {item['msg']}")
        raise CatalogValidationError(
            "Mask catalog validation failed:\n"
            + "\n".join(errors)
            + "\n\nMinimal valid YAML example:\n"
            + MIN_VALID_EXAMPLE_YAML
        ) from exc

    base_dir = catalog_path.resolve().parent
    for mask in catalog.masks:
        mask_path = Path(mask.path)
        if not mask_path.is_absolute():
            mask.path = str(base_dir / mask_path)
    return catalog


def select_mask(catalog: MaskCatalog, mask_id: str | None) -> MaskOption:
    for mask in catalog.masks:
        if mask.id == mask_id:
            return mask
    return catalog.masks[0]


def load_overlay(mask: MaskOption) -> OverlayInput:
    mask_path = Path(mask.path)
    if not mask_path.is_file():
        raise AssetNotFoundError(f"Mask file not found: {mask_path}")
    logger.debug("Loading mask %s from %s", mask.id, mask_path)
    return OverlayInput(data=mask_path.read_bytes(), scale=mask.scale)
