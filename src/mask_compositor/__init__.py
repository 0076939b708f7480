"""Center-crop a photo to a fixed canvas and composite a bottom-anchored mask over it."""

from __future__ import annotations

__version__ = "0.1.0"
