from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bedrock_build.config import ProjectPaths, default_config, ensure_project_dirs
from bedrock_build.console import ROOT_LOGGER_NAME
from bedrock_build.toolchain import CommandResult


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class FakeToolchain:
    """Stands in for `tsc` and `esbuild`, writing plausible output files."""

    def __init__(
        self,
        *,
        compile_returncode: int = 0,
        compile_output: str = "",
        bundle_returncode: int = 0,
        bundle_output: str = "",
    ) -> None:
        self.compile_returncode = compile_returncode
        self.compile_output = compile_output
        self.bundle_returncode = bundle_returncode
        self.bundle_output = bundle_output
        self.calls: list[tuple[list[str], Path]] = []

    def __call__(self, cmd, cwd: Path) -> CommandResult:
        cmd = list(cmd)
        self.calls.append((cmd, cwd))
        if "--outDir" in cmd:
            if self.compile_returncode:
                return CommandResult(self.compile_returncode, self.compile_output)
            out = Path(cmd[cmd.index("--outDir") + 1])
            (out / "lib").mkdir(parents=True, exist_ok=True)
            (out / "main.js").write_text('import { greet } from "./lib/greet.js";\ngreet();\n', encoding="utf-8")
            (out / "lib" / "greet.js").write_text("export function greet() {}\n", encoding="utf-8")
            return CommandResult(0, self.compile_output)
        if "--bundle" in cmd:
            if self.bundle_returncode:
                return CommandResult(self.bundle_returncode, self.bundle_output)
            outfile = Path(next(a for a in cmd if a.startswith("--outfile=")).split("=", 1)[1])
            outfile.parent.mkdir(parents=True, exist_ok=True)
            outfile.write_text("// bundled\n", encoding="utf-8")
            return CommandResult(0, self.bundle_output)
        raise AssertionError(f"Unexpected command: {cmd}")

    @property
    def commands(self) -> list[list[str]]:
        return [cmd for cmd, _cwd in self.calls]


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    return FakeToolchain()


def make_addon_project(root: Path) -> Path:
    """
    Lay out a minimal addon project in `root` matching the default config:
    `<short>_BP`, `<short>_RP` and `scripts/main.ts`.
    """
    config = default_config(root)
    bp = root / config.behavior_pack_directory_name
    rp = root / config.resource_pack_directory_name
    (bp / "items").mkdir(parents=True)
    (bp / "items" / "wand.json").write_text('{"format_version": "1.21.0"}\n', encoding="utf-8")
    (bp / "node_modules" / "dep").mkdir(parents=True)
    (bp / "node_modules" / "dep" / "index.js").write_text("x\n", encoding="utf-8")
    (rp / "textures").mkdir(parents=True)
    (rp / "textures" / "art.png").write_bytes(b"\x89PNG\r\n")
    (rp / "textures" / "art.psd").write_bytes(b"8BPS")
    (root / "scripts").mkdir()
    (root / "scripts" / "main.ts").write_text("console.log('hi');\n", encoding="utf-8")
    return root


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return make_addon_project(tmp_path / "goblins")


@pytest.fixture
def project_paths(project: Path) -> ProjectPaths:
    paths = ProjectPaths(project_dir=project, config=default_config(project))
    ensure_project_dirs(paths)
    return paths
