"""
Two-pass render pipeline: FITS samples to an 8-bit RGBA raster.

Pass 1 samples the image sparsely and computes per-channel statistics.
Pass 2 tone-maps every display pixel, in parallel row bands.

Example
-------
>>> from fitsrender import read_fits_image, render_image
>>> image = read_fits_image("M42.fits")
>>> result = render_image(image.data, image.axes, image.header)
>>> result.label, result.raster.shape
('Bayer RGGB', (2160, 3840, 4))

Author: fitsrender contributors
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from .accessor import SampleAccessor, create_accessor
from .bayer import demosaic_nearest, detect_color_mode
from .config import ChannelStats, ColorKind, ColorMode, RenderConfig
from .stats import collect_samples, compose_channel_stats, sample_stride
from .tonemap import tone_map
from .utils import timestamp_hms

logger = logging.getLogger(__name__)


class RasterTooLargeError(MemoryError):
    """The output raster would exceed the configured memory ceiling."""


@dataclass
class RenderResult:
    """Finished raster and what was learned while producing it."""

    raster: np.ndarray
    """RGBA uint8 array of shape (height, width, 4)."""

    mode: ColorMode
    sample_factor: int = 1
    stats: dict[str, ChannelStats] = field(default_factory=dict)
    log: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.mode.label

    @property
    def width(self) -> int:
        return self.raster.shape[1]

    @property
    def height(self) -> int:
        return self.raster.shape[0]


class RenderLog:
    """
    Timestamped render log.

    Lines are kept, forwarded to an optional sink as soon as they are
    emitted, and mirrored to the module logger. A sink that raises is
    detached and its error propagates, failing the render.
    """

    def __init__(self, sink: Callable[[str], None] | None = None):
        self.lines: list[str] = []
        self._sink = sink

    def __call__(self, message: str, level: int = logging.INFO) -> None:
        line = f"{timestamp_hms()}: {message}"
        self.lines.append(line)
        logger.log(level, message)
        if self._sink is not None:
            try:
                self._sink(line)
            except Exception:
                self._sink = None
                raise


def choose_sample_factor(width: int, height: int, max_pixels: int = 16_000_000) -> int:
    """
    Smallest power-of-two downsample factor keeping the display size bounded.

    Parameters
    ----------
    width, height : int
        Raw image size.
    max_pixels : int, default 16_000_000
        Largest allowed (width // f) * (height // f).

    Returns
    -------
    int
        Factor f, a power of two.
    """
    factor = 1
    while (width // factor) * (height // factor) > max_pixels:
        factor *= 2
    return factor


def check_raster_size(width: int, height: int, max_bytes: int = 200_000_000) -> None:
    """Raise RasterTooLargeError if a width x height RGBA raster exceeds max_bytes."""
    n_bytes = width * height * 4
    if n_bytes > max_bytes:
        raise RasterTooLargeError(
            f"Raster {width}x{height} needs {n_bytes} bytes (limit {max_bytes})"
        )


def _render_band(
    pixels: np.ndarray,
    y0: int,
    y1: int,
    accessor: SampleAccessor,
    mode: ColorMode,
    sample_factor: int,
    stats_r: ChannelStats,
    stats_g: ChannelStats,
    stats_b: ChannelStats,
) -> int:
    """Tone-map display rows [y0, y1) into their slice of `pixels`."""
    width = pixels.shape[1]
    ys = np.arange(y0, y1, dtype=np.intp) * sample_factor
    xs = np.arange(width, dtype=np.intp) * sample_factor
    band = pixels[y0:y1]

    if mode.kind is ColorKind.RGB_PLANES:
        band[..., 0] = tone_map(accessor.block(0, ys, xs), stats_r)
        band[..., 1] = tone_map(accessor.block(1, ys, xs), stats_g)
        band[..., 2] = tone_map(accessor.block(2, ys, xs), stats_b)
    elif mode.kind is ColorKind.BAYER:
        r, g, b = demosaic_nearest(accessor, mode.pattern, ys, xs)
        band[..., 0] = tone_map(r, stats_r)
        band[..., 1] = tone_map(g, stats_g)
        band[..., 2] = tone_map(b, stats_b)
    else:
        grey = tone_map(accessor.block(0, ys, xs), stats_g)
        band[..., 0] = grey
        band[..., 1] = grey
        band[..., 2] = grey

    band[..., 3] = 255
    return y1 - y0


def _render_parallel(
    pixels: np.ndarray,
    accessor: SampleAccessor,
    mode: ColorMode,
    sample_factor: int,
    stats: tuple[ChannelStats, ChannelStats, ChannelStats],
    workers: int,
    show_progress: bool = False,
) -> None:
    """
    Render all row bands on a thread pool and wait for every one of them.

    Bands write disjoint row slices of `pixels`. The first band failure
    cancels the bands not yet started and is re-raised.
    """
    from .cli_output import create_progress_bar

    height = pixels.shape[0]
    chunk = max(1, height // workers)
    starts = range(0, height, chunk)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                _render_band,
                pixels,
                y0,
                min(height, y0 + chunk),
                accessor,
                mode,
                sample_factor,
                *stats,
            )
            for y0 in starts
        ]

        pbar = create_progress_bar(
            total=height,
            desc=f"Rendering ({workers} threads)",
            unit="row",
            disable=not show_progress,
        )
        with pbar:
            try:
                for future in as_completed(futures):
                    pbar.update(future.result())
            except BaseException:
                for future in futures:
                    future.cancel()
                raise


def render_image(
    data: np.ndarray | None,
    axes: Sequence[int] | None,
    metadata: Mapping[str, Any] | None = None,
    config: RenderConfig | None = None,
    on_log: Callable[[str], None] | None = None,
) -> RenderResult | None:
    """
    Render raw FITS samples into a display raster.

    Parameters
    ----------
    data : np.ndarray or None
        Raw image array, shape (height, width) or (planes, height, width).
    axes : sequence of int or None
        Axis sizes, slowest first; the last two are (height, width).
    metadata : Mapping, optional
        FITS header or mapping with BZERO, BSCALE and Bayer pattern keys.
    config : RenderConfig, optional
        Pipeline configuration. Defaults to RenderConfig().
    on_log : callable, optional
        Receives each timestamped log line as it is emitted.

    Returns
    -------
    RenderResult or None
        None when axes or data are missing, the layout is unsupported, or
        the render failed (the reason is in the log).

    Raises
    ------
    RasterTooLargeError
        If the display raster would exceed `config.max_raster_bytes`.
        Raised before any pixel buffer is allocated.
    """
    if config is None:
        config = RenderConfig()
    config.validate()

    log = RenderLog(on_log)

    try:
        if axes is None or len(axes) < 2:
            log("No image axes", logging.WARNING)
            return None

        true_width = int(axes[-1])
        true_height = int(axes[-2])
        if true_width < 1 or true_height < 1:
            log(f"Empty image: {true_width}x{true_height}", logging.WARNING)
            return None

        sample_factor = choose_sample_factor(true_width, true_height, config.max_display_pixels)
        if sample_factor > 1:
            log(f"Downsample: {sample_factor}x")

        width = true_width // sample_factor
        height = true_height // sample_factor
        if width < 1 or height < 1:
            log(f"Empty display raster {width}x{height}", logging.WARNING)
            return None
        check_raster_size(width, height, config.max_raster_bytes)

        metadata = metadata if metadata is not None else {}
        zero = float(metadata.get("BZERO", 0.0))
        scale = float(metadata.get("BSCALE", 1.0))

        mode = detect_color_mode(axes, metadata)
        log(f"Mode: {mode.label}")

        if data is None:
            log("No image data", logging.WARNING)
            return None

        try:
            accessor = create_accessor(data, true_width, true_height, zero=zero, scale=scale)
        except Exception as e:
            log(f"Accessor Error: {e}", logging.ERROR)
            return None
        if accessor is None or (mode.kind is ColorKind.RGB_PLANES and accessor.n_planes < 3):
            log("Unsupported Data", logging.WARNING)
            return None

        # --- Pass 1: statistics ---
        log("Calculating Stats...")
        stride = sample_stride(width, height, config.stats_sample_target)
        samples = collect_samples(accessor, mode, width, height, sample_factor, stride)
        stats_r, stats_g, stats_b = compose_channel_stats(
            *samples,
            auto_stretch=config.auto_stretch,
            shadow_clip=config.shadow_clip,
            highlight_fraction=config.highlight_fraction,
            target_background=config.target_background,
        )
        for name, s in (("R", stats_r), ("G", stats_g), ("B", stats_b)):
            log(f"{name}: {s.min:g}..{s.max:g} m={s.midtone:.3f}")

        # --- Pass 2: render ---
        workers = config.workers or os.cpu_count() or 1
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        _render_parallel(
            pixels,
            accessor,
            mode,
            sample_factor,
            (stats_r, stats_g, stats_b),
            workers,
            show_progress=config.show_progress,
        )

        log(f"Rendered {width}x{height} ({mode.label})")
        return RenderResult(
            raster=pixels,
            mode=mode,
            sample_factor=sample_factor,
            stats={"R": stats_r, "G": stats_g, "B": stats_b},
            log=log.lines,
        )

    except RasterTooLargeError as e:
        log(f"EXCEPTION: Out of Memory ({e})", logging.ERROR)
        raise
    except Exception as e:
        log(f"EXCEPTION: {e}", logging.ERROR)
        logger.exception("Render failed")
        return None
