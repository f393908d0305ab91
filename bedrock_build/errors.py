"""
errors.py

Responsibility: the error taxonomy shared by every build stage.

`BuildError` and its subclasses are recoverable, user-facing failures: the
builder catches them at its boundary, reports them and returns a failed
result. Anything else is an internal error and propagates.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(RuntimeError):
    pass


class ConfigValidationError(BuildError):
    pass


class InvalidReleaseStage(BuildError, ValueError):
    pass


class ManifestRenderError(BuildError):
    pass


class FilesystemError(BuildError):
    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ToolError(BuildError):
    """An external tool exited with a non-zero status."""

    def __init__(self, message: str, *, returncode: int, output: str) -> None:
        super().__init__(f"{message} (exit code {returncode})\n{output}".rstrip())
        self.returncode = returncode
        self.output = output


class CompilationError(ToolError):
    pass


class BundlingError(ToolError):
    pass
