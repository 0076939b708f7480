import io
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image

from mask_compositor.exceptions import AssetNotFoundError, DecodeError, InvalidFormatError
from mask_compositor.imaging import compositor as compositor_module
from mask_compositor.imaging.codec import DecodedImage, PillowCodec
from mask_compositor.imaging.compositor import Compositor, OverlayInput, process_image
from mask_compositor.imaging.geometry import CropRectangle, OverlayPlacement
from mask_compositor.models.formats import OUTPUT_FORMATS, CompositorConfig, TargetFormat

BLUE = (10, 20, 200)
RED = (220, 30, 30)


def _png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _decode(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as image:
        assert image.format == "JPEG"
        return image.convert("RGB")


def _close(actual: tuple[int, ...], expected: tuple[int, ...], tolerance: int = 12) -> bool:
    return all(abs(a - e) <= tolerance for a, e in zip(actual, expected))


def _half_transparent_mask(width: int, height: int) -> bytes:
    """Transparent top half, opaque red bottom half."""
    mask = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    mask.paste(Image.new("RGBA", (width, height // 2), (*RED, 255)), (0, height // 2))
    return _png(mask)


def test_photo_shows_through_transparent_mask_areas() -> None:
    source = _png(Image.new("RGB", (100, 100), BLUE))
    target = TargetFormat(width=160, height=160, kind="square")

    result = Compositor().process_image(source, OverlayInput(_half_transparent_mask(40, 20)), target)

    assert result.facts.placement == OverlayPlacement(left=16, top=96, width=128, height=64)
    output = _decode(result.data)
    assert output.size == (160, 160)
    assert _close(output.getpixel((80, 20)), BLUE)
    assert _close(output.getpixel((80, 104)), BLUE)
    assert _close(output.getpixel((80, 150)), RED)
    assert _close(output.getpixel((4, 150)), BLUE)


def test_center_crop_keeps_the_middle_of_a_wide_photo() -> None:
    photo = Image.new("RGB", (200, 100), RED)
    photo.paste(Image.new("RGB", (100, 100), BLUE), (100, 0))
    invisible_mask = _png(Image.new("RGBA", (10, 10), (0, 0, 0, 0)))

    result = Compositor().process_image(
        _png(photo), OverlayInput(invisible_mask), TargetFormat(width=96, height=96, kind="square")
    )

    assert result.facts.crop == CropRectangle(left=50, top=0, width=100, height=100)
    output = _decode(result.data)
    assert _close(output.getpixel((16, 48)), RED)
    assert _close(output.getpixel((80, 48)), BLUE)


def test_stories_geometry_for_landscape_photo() -> None:
    source = _png(Image.new("RGB", (800, 600), BLUE))
    overlay = OverlayInput(_half_transparent_mask(200, 100), scale=0.8)

    result = Compositor().process_image(source, overlay, OUTPUT_FORMATS["stories"])

    facts = result.facts
    assert facts.crop == CropRectangle(left=231, top=0, width=337, height=600)
    assert facts.placement == OverlayPlacement(left=108, top=1920 - 432, width=864, height=432)
    assert facts.quality == 95
    assert facts.overlay_has_alpha is True
    assert _decode(result.data).size == (1080, 1920)


def test_overlay_taller_than_canvas_overflows_without_error() -> None:
    source = _png(Image.new("RGB", (64, 64), BLUE))
    tall_mask = _png(Image.new("RGBA", (10, 40), (0, 200, 0, 255)))

    result = Compositor().process_image(source, OverlayInput(tall_mask), TargetFormat(width=160, height=160, kind="square"))

    assert result.facts.placement == OverlayPlacement(left=16, top=0, width=128, height=512)
    output = _decode(result.data)
    assert output.size == (160, 160)
    assert _close(output.getpixel((80, 80)), (0, 200, 0))
    assert _close(output.getpixel((4, 80)), BLUE)


def test_default_scale_applies_when_overlay_has_none() -> None:
    source = _png(Image.new("RGB", (50, 50), BLUE))
    mask = _png(Image.new("RGBA", (10, 10), (0, 0, 0, 0)))
    compositor = Compositor(CompositorConfig(default_scale=0.5))

    defaulted = compositor.process_image(source, OverlayInput(mask), TargetFormat(width=100, height=100, kind="square"))
    explicit = compositor.process_image(source, OverlayInput(mask, scale=0.25), TargetFormat(width=100, height=100, kind="square"))

    assert defaulted.facts.scale == 0.5
    assert defaulted.facts.placement.width == 50
    assert explicit.facts.placement.width == 25


def test_quality_setting_changes_output_size() -> None:
    gradient = Image.merge(
        "RGB",
        (
            Image.linear_gradient("L").resize((128, 128)),
            Image.linear_gradient("L").rotate(90).resize((128, 128)),
            Image.new("L", (128, 128), 90),
        ),
    )
    source = _png(gradient.effect_spread(6))
    mask = OverlayInput(_png(Image.new("RGBA", (10, 10), (0, 0, 0, 0))))
    target = TargetFormat(width=128, height=128, kind="square")

    low = Compositor(CompositorConfig(quality=10)).process_image(source, mask, target)
    high = Compositor(CompositorConfig(quality=95)).process_image(source, mask, target)

    assert low.facts.quality == 10
    assert len(low.data) < len(high.data)


def test_same_inputs_give_same_result() -> None:
    source = _png(Image.new("RGB", (300, 200), BLUE))
    overlay = OverlayInput(_half_transparent_mask(30, 20))
    target = TargetFormat(width=90, height=160, kind="stories")

    first = process_image(source, overlay, target)
    second = process_image(source, overlay, target)

    assert first.facts == second.facts
    assert first.data == second.data


def test_concurrent_calls_share_one_compositor() -> None:
    compositor = Compositor()
    source = _png(Image.new("RGB", (120, 90), BLUE))
    overlay = OverlayInput(_half_transparent_mask(30, 20))
    target = TargetFormat(width=60, height=60, kind="square")

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: compositor.process_image(source, overlay, target), range(8)))

    assert len({result.data for result in results}) == 1
    assert len({result.facts for result in results}) == 1


def test_unreadable_source_raises_decode_error() -> None:
    mask = OverlayInput(_png(Image.new("RGBA", (10, 10))))
    with pytest.raises(DecodeError):
        Compositor().process_image(b"not an image", mask, OUTPUT_FORMATS["square"])


def test_missing_overlay_bytes_raise_asset_not_found() -> None:
    source = _png(Image.new("RGB", (10, 10)))
    with pytest.raises(AssetNotFoundError):
        Compositor().process_image(source, OverlayInput(b""), OUTPUT_FORMATS["square"])


def test_unreadable_overlay_raises_decode_error() -> None:
    source = _png(Image.new("RGB", (10, 10)))
    with pytest.raises(DecodeError):
        Compositor().process_image(source, OverlayInput(b"garbage"), OUTPUT_FORMATS["square"])


class _SizelessSourceCodec(PillowCodec):
    """Pretends the size of one specific payload cannot be determined."""

    def __init__(self, sizeless: bytes) -> None:
        self.sizeless = sizeless

    def decode(self, data: bytes) -> DecodedImage:
        decoded = super().decode(data)
        if data != self.sizeless:
            return decoded
        return DecodedImage(pixels=decoded.pixels, width=None, height=0, has_alpha=decoded.has_alpha)


def test_unknown_source_size_falls_back_to_configured_dimensions() -> None:
    source = _png(Image.new("RGB", (40, 30), BLUE))
    mask = OverlayInput(_png(Image.new("RGBA", (10, 10), (0, 0, 0, 0))))
    config = CompositorConfig(fallback_width=40, fallback_height=20)
    compositor = Compositor(config, codec=_SizelessSourceCodec(source))

    result = compositor.process_image(source, mask, TargetFormat(width=20, height=20, kind="square"))

    assert result.facts.used_fallback_size is True
    assert (result.facts.source_width, result.facts.source_height) == (40, 20)
    assert result.facts.crop == CropRectangle(left=10, top=0, width=20, height=20)


def test_facts_serialize_to_plain_dict() -> None:
    source = _png(Image.new("RGB", (100, 100), BLUE))
    result = Compositor().process_image(source, OverlayInput(_half_transparent_mask(20, 10)), OUTPUT_FORMATS["square"])

    facts = result.facts.to_dict()
    assert facts["crop"] == {"left": 0, "top": 0, "width": 100, "height": 100}
    assert facts["placement"] == {"left": 108, "top": 648, "width": 864, "height": 432}
    assert facts["target_kind"] == "square"


def test_fallback_size_larger_than_pixels_is_rejected() -> None:
    source = _png(Image.new("RGB", (10, 10), BLUE))
    mask = OverlayInput(_png(Image.new("RGBA", (10, 10), (0, 0, 0, 0))))
    compositor = Compositor(CompositorConfig(), codec=_SizelessSourceCodec(source))

    with pytest.raises(InvalidFormatError):
        compositor.process_image(source, mask, TargetFormat(width=20, height=20, kind="square"))


def test_process_image_computes_geometry_in_one_call(monkeypatch) -> None:
    calls = []
    original = compositor_module.compute_geometry

    def recording_geometry(*args):
        calls.append(args)
        return original(*args)

    monkeypatch.setattr(compositor_module, "compute_geometry", recording_geometry)
    source = _png(Image.new("RGB", (800, 600), BLUE))

    Compositor().process_image(source, OverlayInput(_half_transparent_mask(200, 100)), OUTPUT_FORMATS["stories"])

    assert calls == [((800, 600), (1080, 1920), (200, 100), 0.8)]
