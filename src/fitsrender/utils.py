"""
Utility functions for the fitsrender pipeline.

Includes:
- Version info
- Timestamps for render logs

Author: fitsrender contributors
"""

from __future__ import annotations

import platform
import sys
from datetime import datetime

__version__ = "0.3.0"
__version_info__ = {
    "major": 0,
    "minor": 3,
    "patch": 0,
    "status": "beta",
    "date": "2026-10-19",
}


def get_version_banner() -> str:
    """Return a formatted version banner for logging."""
    return f"fitsrender v{__version__} | FITS preview renderer"


def get_version() -> str:
    """Return the library version string."""
    return __version__


def get_platform_info() -> str:
    """Return platform information string."""
    return f"{platform.system()} {platform.release()} / Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"


def timestamp_hms(now: datetime | None = None) -> str:
    """Return a local wall-clock time stamp with milliseconds, e.g. 21:04:07.512."""
    if now is None:
        now = datetime.now()
    return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
