"""
File discovery module for the scanner package.

Enumerates candidate image files under a root directory with a single
os.walk traversal, pruning blacklisted folders before descending into them.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from ..config import SKIP_FOLDERS
from .dependencies import HAS_HEIF_SUPPORT
from .hashing import is_image_file

logger = logging.getLogger(__name__)


def should_skip(path: str, skip_folders: Iterable[str] = SKIP_FOLDERS) -> bool:
    """Check whether a path contains any blacklisted folder fragment."""
    return any(item in path for item in skip_folders)


def iter_image_files(
    root_path: str | Path,
    recursive: bool = True,
    skip_folders: Iterable[str] = SKIP_FOLDERS,
) -> Iterator[str]:
    """
    Yield image files under root_path as they are discovered.

    Args:
        root_path: Directory to search
        recursive: If True, descend into subdirectories
        skip_folders: Path fragments; matching files and folders are skipped

    Yields:
        Absolute, symlink-resolved file paths, each at most once. Entries of
        a directory are yielded in sorted order.
    """
    skip_folders = tuple(skip_folders)
    root = str(Path(root_path).resolve())
    seen: set[str] = set()

    def on_error(err: OSError):
        logger.warning(f"Error accessing path {err.filename!r}: {err.strerror}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        if recursive:
            # Prune in place so os.walk never enters skipped folders
            dirnames[:] = sorted(
                d for d in dirnames
                if not should_skip(os.path.join(dirpath, d), skip_folders)
            )
        else:
            dirnames[:] = []

        for name in sorted(filenames):
            filepath = os.path.join(dirpath, name)
            if should_skip(filepath, skip_folders) or not is_image_file(filepath):
                continue
            if not HAS_HEIF_SUPPORT and os.path.splitext(name)[1].lower() in {'.heic', '.heif'}:
                continue

            resolved = str(Path(filepath).resolve())
            if resolved not in seen:
                seen.add(resolved)
                yield resolved


def find_image_files(
    root_path: str | Path,
    recursive: bool = True,
    skip_folders: Iterable[str] = SKIP_FOLDERS,
) -> list[str]:
    """
    Find all image files in the given directory.

    Args:
        root_path: Directory path to search for images
        recursive: If True, search subdirectories recursively
        skip_folders: Path fragments to exclude

    Returns:
        List of absolute file paths as strings, in enumeration order
    """
    return list(iter_image_files(root_path, recursive=recursive, skip_folders=skip_folders))


__all__ = ['should_skip', 'iter_image_files', 'find_image_files']
