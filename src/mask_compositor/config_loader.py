from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate
from pydantic import ValidationError

from mask_compositor.exceptions import ConfigurationError
from mask_compositor.models.formats import CompositorConfig

logger = logging.getLogger(__name__)


def _load_json_or_yaml(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    try:
        if suffix in {".yaml", ".yml"}:
            parsed = yaml.safe_load(content)
        elif suffix == ".json":
            parsed = json.loads(content)
        else:
            raise ConfigurationError(f"Unsupported compositor config format: {path}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to parse compositor config {path}: {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigurationError("Compositor config must be a top-level object/map")
    return parsed


def _default_schema_path() -> Path:
    return Path(__file__).resolve().parents[2] / "schemas" / "compositor_config.schema.json"


def default_config_path() -> Path:
    return Path(__file__).resolve().parents[2] / "config" / "compositor.yaml"


def load_compositor_config(config_path: Path | None = None) -> CompositorConfig:
    """Load the compositor tunables.

    An explicit *config_path* must exist.  Without one, ``config/compositor.yaml``
    is used when present and built-in defaults otherwise.
    """
    if config_path is None:
        config_path = default_config_path()
        if not config_path.exists():
            return CompositorConfig()
    elif not config_path.exists():
        raise ConfigurationError(f"Compositor config file not found: {config_path}")

    data = _load_json_or_yaml(config_path)
    schema_path = _default_schema_path()

    if schema_path.exists():
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        try:
            validate(instance=data, schema=schema)
        except JsonSchemaValidationError as exc:
            raise ConfigurationError(f"Compositor config schema validation failed: {exc.message}") from exc

    try:
        config = CompositorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid compositor config {config_path}: {exc}") from exc

    logger.info("Loaded compositor config from %s", config_path)
    return config
