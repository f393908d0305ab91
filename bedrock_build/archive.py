"""
archive.py

Responsibility: package built packs for distribution.

An `.mcaddon` is a zip holding each pack directory at its top level; the
game imports every pack it contains. A plain `.zip` has the same layout.
"""

from __future__ import annotations

import logging
import os
import zipfile
from collections.abc import Iterable
from pathlib import Path

from bedrock_build.errors import FilesystemError

logger = logging.getLogger(__name__)


def create_archive(pack_dirs: Iterable[str | Path], destination: str | Path) -> Path:
    """
    Write `destination` as a deflated zip of `pack_dirs`, each stored under its
    own directory name. Entries are added in sorted order.
    """
    dest = Path(destination)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(dest, "w", zipfile.ZIP_DEFLATED) as zf:
            for pack_dir in pack_dirs:
                root = Path(pack_dir)
                if not root.is_dir():
                    raise FilesystemError(f"Pack directory not found: {root}", root)
                files: list[Path] = []
                for dirpath, _dirs, filenames in os.walk(root):
                    for name in filenames:
                        files.append(Path(dirpath) / name)
                files.sort(key=lambda p: p.relative_to(root).as_posix())
                for path in files:
                    arcname = f"{root.name}/{path.relative_to(root).as_posix()}"
                    zf.write(path, arcname)
    except OSError as e:
        raise FilesystemError(f"Failed writing archive {dest}: {e}", dest) from e

    logger.debug("Wrote archive %s", dest)
    return dest


def archive_name(addon_name: str, version: str, extension: str) -> str:
    safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in addon_name.strip()) or "addon"
    return f"{safe}_{version}.{extension.lstrip('.')}"
