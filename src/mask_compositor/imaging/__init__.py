from .codec import DecodedImage, ImageCodec, PillowCodec
from .compositor import Compositor, OutputImage, OverlayInput, ProcessingFacts, process_image
from .geometry import CropRectangle, OverlayPlacement, compute_crop_rectangle, compute_geometry, compute_overlay_placement

__all__ = [
    "Compositor",
    "CropRectangle",
    "DecodedImage",
    "ImageCodec",
    "OutputImage",
    "OverlayInput",
    "OverlayPlacement",
    "PillowCodec",
    "ProcessingFacts",
    "compute_crop_rectangle",
    "compute_geometry",
    "compute_overlay_placement",
    "process_image",
]
