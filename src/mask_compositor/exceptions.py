"""
Domain-specific exceptions for the mask compositor.

Every failure of the compositing core is terminal for the call: nothing is
retried internally and no partial output is produced.  All exceptions inherit
from ``CompositorError`` so callers can translate them into user-facing
messages with a single broad catch.
"""

from __future__ import annotations


class CompositorError(Exception):
    """Base exception for all compositor errors."""


class InvalidFormatError(CompositorError):
    """Raised for non-positive source/target dimensions or a degenerate aspect ratio."""


class AssetNotFoundError(CompositorError):
    """Raised when the overlay (mask) asset cannot be located."""


class DecodeError(CompositorError):
    """Raised when source or overlay bytes are not a readable raster."""


class EncodeError(CompositorError):
    """Raised when the final canvas cannot be compressed."""


class ConfigurationError(CompositorError):
    """Raised when a configuration file is missing or invalid."""
