"""
copier.py

Responsibility: mirror a directory tree into another directory.

Rules:
- Entries are visited in sorted order so runs are reproducible.
- An ignored entry is skipped together with its whole subtree.
- Destination directories are created as needed; files are overwritten.
- Any filesystem failure aborts the copy with a `FilesystemError`. Files
  already copied stay in place (there is no rollback).

This module intentionally does NOT know about packs, manifests or the build.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from bedrock_build.errors import FilesystemError
from bedrock_build.ignore import IgnoreMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyResult:
    copied_files: int
    skipped_entries: int


def _copy_tree(
    src_dir: Path,
    dst_dir: Path,
    rel_dir: PurePosixPath,
    matcher: IgnoreMatcher,
    counts: list[int],
) -> None:
    with os.scandir(src_dir) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        rel = rel_dir / entry.name
        is_dir = entry.is_dir()
        if matcher.ignores(rel, is_dir=is_dir):
            logger.debug("Ignored %s", rel)
            counts[1] += 1
            continue

        dst_path = dst_dir / entry.name
        if is_dir:
            dst_path.mkdir(parents=True, exist_ok=True)
            _copy_tree(Path(entry.path), dst_path, rel, matcher, counts)
        else:
            shutil.copy2(entry.path, dst_path)
            counts[0] += 1


def copy_directory(
    source_dir: str | Path,
    dest_dir: str | Path,
    ignore_patterns: Iterable[str] | IgnoreMatcher = (),
) -> CopyResult:
    """
    Copy the contents of `source_dir` into `dest_dir`.

    `dest_dir` is created if missing. Entries matching `ignore_patterns`
    (gitignore syntax, matched against paths relative to `source_dir`) are
    left out. A prebuilt `IgnoreMatcher` can be passed to share it across copies.
    """
    src = Path(source_dir)
    dst = Path(dest_dir)
    if not src.is_dir():
        raise FilesystemError(f"Source directory not found: {src}", src)

    matcher = ignore_patterns if isinstance(ignore_patterns, IgnoreMatcher) else IgnoreMatcher(ignore_patterns)
    counts = [0, 0]
    try:
        dst.mkdir(parents=True, exist_ok=True)
        _copy_tree(src, dst, PurePosixPath(), matcher, counts)
    except OSError as e:
        raise FilesystemError(f"Failed copying {src} to {dst}: {e}", e.filename or src) from e

    logger.debug("Copied %d files from %s to %s (%d skipped)", counts[0], src, dst, counts[1])
    return CopyResult(copied_files=counts[0], skipped_entries=counts[1])


def remove_directory(path: str | Path) -> bool:
    """
    Remove a directory tree. Returns False if there was nothing to remove.
    """
    target = Path(path)
    if not target.exists():
        return False
    try:
        shutil.rmtree(target)
    except OSError as e:
        raise FilesystemError(f"Failed removing {target}: {e}", target) from e
    return True
