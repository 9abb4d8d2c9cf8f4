"""
Third-party imaging and progress dependencies for the scanner package.

Pillow and imagehash are required. pillow-heif adds HEIC/HEIF decoding and
tqdm adds progress bars; both are optional and detected once at import.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional

_logger = logging.getLogger(__name__)

try:
    from PIL import Image
    import imagehash
except ImportError as e:
    raise ImportError(
        f"imagematch needs Pillow and imagehash ({e}). "
        "Install with: pip install Pillow imagehash"
    ) from e


def _enable_heif() -> bool:
    """Register the HEIC/HEIF opener with Pillow if pillow-heif is installed."""
    try:
        from pillow_heif import register_heif_opener
    except ImportError:
        _logger.debug("pillow-heif not installed - HEIC/HEIF files will be skipped")
        return False
    register_heif_opener()
    return True


def _find_tqdm() -> Optional[Any]:
    try:
        from tqdm import tqdm
    except ImportError:
        return None
    return tqdm


HAS_HEIF_SUPPORT = _enable_heif()

_tqdm_class = _find_tqdm()
HAS_TQDM = _tqdm_class is not None

# Large scans and panoramas exceed Pillow's default decompression bomb limit
Image.MAX_IMAGE_PIXELS = 500_000_000
warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)


def make_progress_bar(
    total: Optional[int],
    desc: str,
    unit: str = "img",
    enabled: bool = True,
) -> Optional[Any]:
    """
    Return a tqdm progress bar, or None when disabled or tqdm is missing.

    A total of None gives a counter without a known end (streamed input).
    """
    if not (enabled and HAS_TQDM):
        return None
    if total is not None and total <= 0:
        return None
    return _tqdm_class(total=total, desc=desc, unit=unit, ncols=80)


__all__ = [
    'Image',
    'imagehash',
    'HAS_HEIF_SUPPORT',
    'HAS_TQDM',
    'make_progress_bar',
    '_logger',
]
