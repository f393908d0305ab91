"""
ignore.py

Responsibility: decide which entries are left out when staging pack sources.

Patterns use gitignore syntax (parsed by `pathspec` as `gitwildmatch`), so
they apply at every depth of the tree:
- `.git` / `*.psd` match an entry with that name anywhere
- `**/node_modules` matches a `node_modules` entry anywhere
- `/textures/raw` is anchored to the root of the copied tree
- a trailing slash (`cache/`) only matches directories
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePath

import pathspec


class IgnoreMatcher:
    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns: tuple[str, ...] = tuple(p for p in patterns if p and p.strip())
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.patterns)

    def ignores(self, rel_path: str | PurePath, *, is_dir: bool = False) -> bool:
        """
        Return True if `rel_path` (relative to the root of the copy, or a bare
        entry name) should be skipped.
        """
        if not self.patterns:
            return False
        path_str = PurePath(rel_path).as_posix()
        if self._spec.match_file(path_str):
            return True
        # Directory-only patterns (`build/`) need the trailing slash to match.
        return is_dir and self._spec.match_file(path_str + "/")
