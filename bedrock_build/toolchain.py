"""
toolchain.py

Responsibility: run the external script toolchain.

- `tsc` compiles the TypeScript sources into a scratch directory
- `esbuild` bundles the compiled entry script into a single module

Both run to completion with stdout and stderr merged, and a non-zero exit is
raised as a `CompilationError` / `BundlingError` carrying the captured output.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from bedrock_build.errors import BundlingError, CompilationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    output: str


Runner = Callable[[Sequence[str], Path], CommandResult]


def run_command(cmd: Sequence[str], cwd: Path) -> CommandResult:
    """
    Run `cmd` in `cwd` and wait for it, capturing stdout and stderr together.

    The executable is resolved with `shutil.which` so `.cmd` shims from npm
    work on Windows. A missing executable is reported as exit code 127.
    """
    args = list(cmd)
    exe = shutil.which(args[0]) if args else None
    if exe is None:
        name = args[0] if args else "<empty command>"
        return CommandResult(returncode=127, output=f"Executable not found: {name}")

    logger.debug("Running %s in %s", " ".join(args), cwd)
    proc = subprocess.run(
        [exe, *args[1:]],
        cwd=str(cwd),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
    )
    return CommandResult(returncode=proc.returncode, output=proc.stdout or "")


def compile_scripts(
    *,
    compiler: Sequence[str],
    project_dir: Path,
    out_dir: Path,
    runner: Runner = run_command,
) -> str:
    cmd = [*compiler, "--noEmit", "false", "--outDir", str(out_dir)]
    result = runner(cmd, project_dir)
    if result.returncode != 0:
        raise CompilationError(
            "Failed to compile TypeScript scripts", returncode=result.returncode, output=result.output
        )
    return result.output


def external_flags(modules: Iterable[str]) -> list[str]:
    """
    `--external` flags for esbuild. A bare name or scope also covers its
    subpaths (`@minecraft` covers `@minecraft/server`).
    """
    flags: list[str] = []
    for name in modules:
        name = name.rstrip("/")
        if not name:
            continue
        flags.append(f"--external:{name}")
        if not name.endswith("*"):
            flags.append(f"--external:{name}/*")
    return flags


def bundle_scripts(
    *,
    bundler: Sequence[str],
    entry_file: Path,
    out_file: Path,
    external_modules: Iterable[str],
    minify: bool,
    cwd: Path,
    runner: Runner = run_command,
) -> str:
    cmd = [
        *bundler,
        str(entry_file),
        "--bundle",
        "--format=esm",
        f"--outfile={out_file}",
        *external_flags(external_modules),
    ]
    if minify:
        cmd.append("--minify")
    result = runner(cmd, cwd)
    if result.returncode != 0:
        raise BundlingError("Failed to bundle scripts", returncode=result.returncode, output=result.output)
    return result.output
