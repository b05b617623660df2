"""
Bayer channel classification and nearest-neighbour demosaic.

Each supported pattern is a 2x2 tile indexed [row parity][column parity]:

    RGGB        BGGR        GRBG        GBRG
    R  G        B  G        G  R        G  B
    G  B        G  R        B  G        R  G

The demosaic is deliberately cheap: every missing channel is read from one
fixed neighbour of the site, clamped to the image bounds. No interpolation.

Author: fitsrender contributors
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import numpy as np

from .accessor import SampleAccessor
from .config import Channel, ColorKind, ColorMode

logger = logging.getLogger(__name__)

R, G, B = Channel.RED, Channel.GREEN, Channel.BLUE

BAYER_TILES = {
    "RGGB": np.array([[R, G], [G, B]], dtype=np.uint8),
    "BGGR": np.array([[B, G], [G, R]], dtype=np.uint8),
    "GRBG": np.array([[G, R], [B, G]], dtype=np.uint8),
    "GBRG": np.array([[G, B], [R, G]], dtype=np.uint8),
}

# Header keys searched, in order, for the mosaic pattern
BAYER_KEYS = ("BAYERPAT", "COLORTYP", "XBAYERPAT", "CFA")

# Site channel -> {output channel: (dx, dy)} of the raw sample it is read from
DEMOSAIC_OFFSETS = {
    R: {R: (0, 0), G: (1, 0), B: (1, 1)},
    B: {R: (-1, -1), G: (1, 0), B: (0, 0)},
    G: {R: (1, 0), G: (0, 0), B: (0, 1)},
}


def normalize_pattern(value: Any) -> str | None:
    """Strip quotes and blanks from a header value and upper-case it."""
    if value is None:
        return None
    text = str(value).replace("'", "").replace('"', "").strip().upper()
    return text or None


def find_bayer_pattern(metadata: Mapping[str, Any] | None) -> str | None:
    """
    Return the normalized pattern from the first non-empty Bayer header key.

    Parameters
    ----------
    metadata : Mapping or None
        FITS header (astropy Header) or any mapping of card values.

    Returns
    -------
    str or None
        Upper-case pattern string, or None if no key carries one.
    """
    if metadata is None:
        return None
    for key in BAYER_KEYS:
        value = metadata.get(key)
        if value is None or str(value).strip() == "":
            continue
        return normalize_pattern(value)
    return None


def detect_color_mode(axes: Sequence[int], metadata: Mapping[str, Any] | None = None) -> ColorMode:
    """
    Decide the colour mode of an image from its axes and header.

    Three leading planes mean RGB. Otherwise a recognised 4-character Bayer
    pattern means a mosaic. Anything else renders as greyscale.
    """
    if len(axes) == 3 and axes[0] == 3:
        return ColorMode(ColorKind.RGB_PLANES)

    pattern = find_bayer_pattern(metadata)
    if pattern is not None and len(pattern) == 4:
        if pattern in BAYER_TILES:
            return ColorMode(ColorKind.BAYER, pattern)
        logger.warning("Unknown Bayer pattern %r, rendering as greyscale", pattern)

    return ColorMode(ColorKind.GREYSCALE)


def classify(mode: ColorMode, x: int, y: int, plane: int = 0) -> Channel:
    """
    Return the logical channel of the raw sample at (x, y) in a plane.

    Parameters
    ----------
    mode : ColorMode
        Colour mode of the render.
    x, y : int
        Raw sample coordinates.
    plane : int, default 0
        Plane index, only meaningful for RGB planes.
    """
    if mode.kind is ColorKind.RGB_PLANES:
        return Channel(plane)
    if mode.kind is ColorKind.BAYER:
        return Channel(int(BAYER_TILES[mode.pattern][y % 2, x % 2]))
    return G


def channel_map(pattern: str, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
    """
    Classify the raw grid spanned by row and column indices.

    Returns
    -------
    np.ndarray
        uint8 array of shape (len(ys), len(xs)) holding Channel values.
    """
    tile = BAYER_TILES[pattern]
    ys = np.asarray(ys)
    xs = np.asarray(xs)
    return tile[(ys % 2)[:, np.newaxis], (xs % 2)[np.newaxis, :]]


def neighbor_position(
    site: Channel,
    target: Channel,
    x: int,
    y: int,
    width: int,
    height: int,
) -> tuple[int, int]:
    """Raw position supplying channel `target` at a `site`-classified pixel."""
    dx, dy = DEMOSAIC_OFFSETS[site][target]
    return min(max(x + dx, 0), width - 1), min(max(y + dy, 0), height - 1)


def demosaic_nearest(
    accessor: SampleAccessor,
    pattern: str,
    ys: np.ndarray,
    xs: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Nearest-neighbour demosaic of a single-plane mosaic on a raw grid.

    Parameters
    ----------
    accessor : SampleAccessor
        Calibrated view of the mosaic.
    pattern : str
        Bayer pattern code.
    ys, xs : np.ndarray
        1D raw row and column indices of the output grid.

    Returns
    -------
    tuple[np.ndarray, np.ndarray, np.ndarray]
        (R, G, B) float32 arrays of shape (len(ys), len(xs)).
    """
    ys = np.asarray(ys, dtype=np.intp)
    xs = np.asarray(xs, dtype=np.intp)
    sites = channel_map(pattern, ys, xs)

    gathered: dict[tuple[int, int], np.ndarray] = {}

    def at(offset: tuple[int, int]) -> np.ndarray:
        if offset not in gathered:
            dx, dy = offset
            gathered[offset] = accessor.block(
                0,
                np.clip(ys + dy, 0, accessor.height - 1),
                np.clip(xs + dx, 0, accessor.width - 1),
            )
        return gathered[offset]

    out = []
    for target in (R, G, B):
        values = np.empty(sites.shape, dtype=np.float32)
        for site, offsets in DEMOSAIC_OFFSETS.items():
            mask = sites == site
            if mask.any():
                values[mask] = at(offsets[target])[mask]
        out.append(values)

    return out[0], out[1], out[2]
