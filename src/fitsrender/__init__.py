"""
fitsrender - Fast, statistics-driven previews of FITS images.

Renders mono, RGB and Bayer-mosaic FITS data to 8-bit RGBA rasters with a
robust auto-stretch (median/MAD black point, midtone transfer function).

Author: fitsrender contributors

Example
-------
>>> from fitsrender import read_fits_image, render_image, write_raster
>>> image = read_fits_image("M31_stack.fits")
>>> result = render_image(image.data, image.axes, image.header)
>>> print(result.label)
Bayer RGGB
>>> write_raster("M31_preview.png", result.raster)

Example (linear)
----------------
>>> from fitsrender import RenderConfig
>>> result = render_image(image.data, image.axes, image.header,
...                       config=RenderConfig(auto_stretch=False))
"""

from .config import (
    NEUTRAL_STATS,
    Channel,
    ChannelStats,
    ColorKind,
    ColorMode,
    RenderConfig,
)
from .utils import __version__, __version_info__, get_version_banner

# Sample access
from .accessor import SampleAccessor, create_accessor, resolve_encoding

# Bayer classification
from .bayer import (
    BAYER_TILES,
    classify,
    demosaic_nearest,
    detect_color_mode,
    find_bayer_pattern,
)

# Statistics
from .stats import collect_samples, compose_channel_stats, compute_channel_stats

# Tone mapping
from .tonemap import map_value, mtf, tone_map

# Pipeline
from .render import (
    RasterTooLargeError,
    RenderResult,
    check_raster_size,
    choose_sample_factor,
    render_image,
)

# I/O
from .io import FitsImage, filter_cards, header_cards, read_fits_image, write_raster

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    "get_version_banner",
    # Config / types
    "Channel",
    "ChannelStats",
    "ColorKind",
    "ColorMode",
    "NEUTRAL_STATS",
    "RenderConfig",
    # Accessor
    "SampleAccessor",
    "create_accessor",
    "resolve_encoding",
    # Bayer
    "BAYER_TILES",
    "classify",
    "demosaic_nearest",
    "detect_color_mode",
    "find_bayer_pattern",
    # Statistics
    "collect_samples",
    "compose_channel_stats",
    "compute_channel_stats",
    # Tone mapping
    "map_value",
    "mtf",
    "tone_map",
    # Pipeline
    "RasterTooLargeError",
    "RenderResult",
    "check_raster_size",
    "choose_sample_factor",
    "render_image",
    # I/O
    "FitsImage",
    "filter_cards",
    "header_cards",
    "read_fits_image",
    "write_raster",
]
