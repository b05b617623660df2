"""
Configuration and shared types for the fitsrender pipeline.

Author: fitsrender contributors
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class Channel(IntEnum):
    """Logical colour channel of a sample."""

    RED = 0
    GREEN = 1
    BLUE = 2


class ColorKind(Enum):
    """How the pixel samples of an image map onto colour channels."""

    RGB_PLANES = "rgb"  # Three stacked planes, one per channel
    BAYER = "bayer"  # Single-plane sensor mosaic
    GREYSCALE = "greyscale"  # Single plane, rendered grey


@dataclass(frozen=True)
class ColorMode:
    """Colour mode of one render, decided from the axes and the header."""

    kind: ColorKind
    pattern: str | None = None
    """Bayer pattern code (RGGB, BGGR, GRBG, GBRG), only for BAYER."""

    @property
    def label(self) -> str:
        """Human-readable mode label shown next to the rendered image."""
        if self.kind is ColorKind.RGB_PLANES:
            return "RGB 3D"
        if self.kind is ColorKind.BAYER:
            return f"Bayer {self.pattern}"
        return "Greyscale 2D"


@dataclass(frozen=True)
class ChannelStats:
    """Display range and midtone of one channel."""

    min: float
    max: float
    midtone: float = 0.5  # 0.5 = linear


NEUTRAL_STATS = ChannelStats(0.0, 65535.0, 0.5)


@dataclass
class RenderConfig:
    """
    Configuration for the render pipeline.

    Defaults reproduce the reference viewer behaviour.
    """

    # --- Tone mapping ---
    auto_stretch: bool = True
    """Derive the display range from the data (False = fixed linear range)."""

    shadow_clip: float = 2.8
    """Shadow point in MAD units below the median."""

    highlight_fraction: float = 0.9995
    """Quantile of the sorted samples used as white point."""

    target_background: float = 0.10
    """Display brightness the median background is mapped to."""

    # --- Sampling ---
    stats_sample_target: int = 50_000
    """Approximate number of grid positions visited for statistics."""

    max_display_pixels: int = 16_000_000
    """Raw images above this pixel count are downsampled by powers of two."""

    max_raster_bytes: int = 200_000_000
    """Hard ceiling on the RGBA raster size."""

    # --- Parallelism ---
    workers: int | None = None
    """Number of render threads. None = os.cpu_count()."""

    show_progress: bool = False
    """Show a progress bar over completed row bands."""

    def validate(self) -> None:
        """Validate configuration parameters."""
        if self.shadow_clip < 0:
            raise ValueError(f"shadow_clip must be >= 0, got {self.shadow_clip}")
        if not 0.0 < self.highlight_fraction <= 1.0:
            raise ValueError(
                f"highlight_fraction must be in (0, 1], got {self.highlight_fraction}"
            )
        if not 0.0 < self.target_background < 1.0:
            raise ValueError(
                f"target_background must be in (0, 1), got {self.target_background}"
            )
        if self.stats_sample_target < 1:
            raise ValueError(
                f"stats_sample_target must be >= 1, got {self.stats_sample_target}"
            )
        if self.max_display_pixels < 1:
            raise ValueError(
                f"max_display_pixels must be >= 1, got {self.max_display_pixels}"
            )
        if self.max_raster_bytes < 4:
            raise ValueError(f"max_raster_bytes must be >= 4, got {self.max_raster_bytes}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
