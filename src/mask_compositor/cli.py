from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from mask_compositor.assets.masks import CatalogValidationError
from mask_compositor.exceptions import CompositorError
from mask_compositor.models.formats import OUTPUT_FORMATS
from mask_compositor.pipeline import RunConfig, run_job


def _strip_optional_quotes(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) >= 2 and ((trimmed[0] == '"' and trimmed[-1] == '"') or (trimmed[0] == "'" and trimmed[-1] == "'")):
        return trimmed[1:-1]
    return trimmed


def _load_env_file(env_path: Path) -> None:
    if not env_path.exists() or not env_path.is_file():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, raw_value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        os.environ.setdefault(key, _strip_optional_quotes(raw_value))


def _load_default_env_files() -> None:
    cwd_env = Path.cwd() / ".env"
    project_root_env = Path(__file__).resolve().parents[2] / ".env"

    _load_env_file(project_root_env)
    if cwd_env != project_root_env:
        _load_env_file(cwd_env)


def _parse_size(value: str) -> tuple[int, int]:
    try:
        width_text, height_text = value.lower().split("x", 1)
        return int(width_text), int(height_text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}") from exc


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crop a photo to a post/stories canvas and overlay a mask")
    parser.add_argument("--input", required=True, help="Source photo (any format Pillow can read)")
    parser.add_argument("--output", required=True, help="Output JPEG path")
    parser.add_argument("--format", choices=sorted(OUTPUT_FORMATS), default="square", help="Canvas format")
    parser.add_argument("--size", type=_parse_size, default=None, help="Custom canvas size as WIDTHxHEIGHT")
    parser.add_argument("--mask", default=None, help="Mask id; defaults to the format name, then the first mask")
    parser.add_argument(
        "--masks",
        default=os.getenv("MASK_COMPOSITOR_MASKS"),
        help="Mask catalog (.yaml/.yml/.json). If omitted, the bundled assets/masks/1.png is used.",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("MASK_COMPOSITOR_CONFIG"),
        help="Compositor config (.yaml/.yml/.json). If omitted, config/compositor.yaml is used when present.",
    )
    parser.add_argument("--report", default=None, help="Optional JSON file receiving the processing facts")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    _load_default_env_files()
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")

    width, height = args.size if args.size else (None, None)
    config = RunConfig(
        input_path=Path(args.input),
        output_path=Path(args.output),
        format_kind=args.format,
        mask_id=args.mask,
        masks_path=Path(args.masks) if args.masks else None,
        config_path=Path(args.config) if args.config else None,
        report_path=Path(args.report) if args.report else None,
        width=width,
        height=height,
    )

    try:
        report = run_job(config)
    except CatalogValidationError as exc:
        raise SystemExit(f"Mask catalog error:\n{exc}") from exc
    except CompositorError as exc:
        raise SystemExit(f"Processing failed: {exc}") from exc

    crop = report["crop"]
    placement = report["placement"]
    print("Composite summary")
    print(f"- Canvas: {report['target_width']}x{report['target_height']} ({report['target_kind']})")
    print(f"- Crop: {crop['width']}x{crop['height']} at {crop['left']},{crop['top']}")
    print(f"- Mask {report['mask_id']}: {placement['width']}x{placement['height']} at {placement['left']},{placement['top']}")
    print(f"- Output: {report['output']}")


if __name__ == "__main__":
    main()
