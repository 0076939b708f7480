from .formats import OUTPUT_FORMATS, CompositorConfig, MaskOption, TargetFormat

__all__ = ["OUTPUT_FORMATS", "CompositorConfig", "MaskOption", "TargetFormat"]
