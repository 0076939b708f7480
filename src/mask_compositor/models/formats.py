from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TargetFormat(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    kind: str = Field(min_length=1)


OUTPUT_FORMATS: dict[str, TargetFormat] = {
    "stories": TargetFormat(width=1080, height=1920, kind="stories"),
    "square": TargetFormat(width=1080, height=1080, kind="square"),
}


class MaskOption(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    path: str = Field(min_length=1)
    scale: float | None = Field(default=None, gt=0)


class CompositorConfig(BaseModel):
    """Tunables of the compositing core.

    ``fallback_width``/``fallback_height`` are substituted when the codec cannot
    report the source size.
    """

    model_config = ConfigDict(frozen=True)

    quality: int = Field(default=95, ge=1, le=100)
    default_scale: float = Field(default=0.8, gt=0)
    fallback_width: int = Field(default=800, gt=0)
    fallback_height: int = Field(default=800, gt=0)
