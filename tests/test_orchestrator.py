import json
import zipfile
from dataclasses import replace
from pathlib import Path

import pytest

from bedrock_build import orchestrator
from bedrock_build.config import ProjectPaths, default_config
from bedrock_build.errors import CompilationError, FilesystemError
from bedrock_build.ignore import IgnoreMatcher
from bedrock_build.orchestrator import Builder, BuildOptions, scratch_workspace
from bedrock_build.version import VersionInfo

from conftest import FakeToolchain


class RecordingNotifier:
    def __init__(self) -> None:
        self.results: list[bool] = []

    def notify(self, success: bool) -> None:
        self.results.append(success)


def _builder(paths: ProjectPaths, runner, **overrides) -> tuple[Builder, RecordingNotifier]:
    notifier = RecordingNotifier()
    options = BuildOptions.from_config(paths.config, **overrides)
    return Builder(paths.config, paths, options, runner=runner, notifier=notifier), notifier


def _files(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}


def test_options_from_config_overrides() -> None:
    config = default_config("/tmp/example")
    options = BuildOptions.from_config(config, bundle_scripts=True, minify_bundle=None)
    assert options.bundle_scripts is True
    assert options.minify_bundle is config.minify_bundle
    assert options.external_modules == ("@minecraft",)
    assert options.entry_script_name == "main"
    assert options.copy_to_output is True


def test_dev_build_without_bundling(project_paths: ProjectPaths, fake_toolchain: FakeToolchain) -> None:
    builder, notifier = _builder(project_paths, fake_toolchain)

    assert builder.build_dev() is True

    out_bp = project_paths.output_dir / "gobli_BP"
    out_rp = project_paths.output_dir / "gobli_RP"
    assert _files(out_bp) == {"manifest.json", "items/wand.json", "scripts/main.js", "scripts/lib/greet.js"}
    assert _files(out_rp) == {"manifest.json", "textures/art.png"}
    assert not project_paths.scratch_dir.exists()
    assert notifier.results == [True]
    assert len(fake_toolchain.calls) == 1
    cmd, cwd = fake_toolchain.calls[0]
    assert cmd[0] == "tsc"
    assert cwd == project_paths.project_dir

    bp = json.loads((out_bp / "manifest.json").read_text(encoding="utf-8"))
    rp = json.loads((out_rp / "manifest.json").read_text(encoding="utf-8"))
    assert bp["dependencies"][0]["uuid"] == rp["header"]["uuid"]
    assert "DEV" in bp["header"]["name"]


def test_dev_builds_keep_identifiers(project_paths: ProjectPaths, fake_toolchain: FakeToolchain) -> None:
    builder, _ = _builder(project_paths, fake_toolchain)
    manifest = project_paths.output_dir / "gobli_BP" / "manifest.json"

    builder.build_dev()
    first = manifest.read_text(encoding="utf-8")
    builder.build_dev()

    assert manifest.read_text(encoding="utf-8") == first


def test_compiled_scripts_copied_verbatim(project_paths: ProjectPaths, fake_toolchain: FakeToolchain) -> None:
    builder, _ = _builder(project_paths, fake_toolchain, bundle_scripts=False)
    builder.build_dev()

    scripts = project_paths.output_dir / "gobli_BP" / "scripts"
    assert (scripts / "main.js").read_text(encoding="utf-8").startswith("import { greet }")
    assert (scripts / "lib" / "greet.js").read_text(encoding="utf-8") == "export function greet() {}\n"
    assert not any("--bundle" in cmd for cmd in fake_toolchain.commands)


def test_bundling(project_paths: ProjectPaths, fake_toolchain: FakeToolchain) -> None:
    builder, _ = _builder(project_paths, fake_toolchain, bundle_scripts=True, minify_bundle=True)

    assert builder.build_dev() is True

    bundle_cmd = fake_toolchain.commands[1]
    assert bundle_cmd[0] == "esbuild"
    assert bundle_cmd[1] == str(project_paths.scratch_compiled_dir / "main.js")
    assert "--format=esm" in bundle_cmd
    assert "--minify" in bundle_cmd
    assert "--external:@minecraft" in bundle_cmd
    assert "--external:@minecraft/*" in bundle_cmd
    assert _files(project_paths.output_dir / "gobli_BP" / "scripts") == {"main.js"}


def test_compile_failure_aborts_and_cleans_up(project_paths: ProjectPaths) -> None:
    runner = FakeToolchain(compile_returncode=2, compile_output="syntax error")
    builder, notifier = _builder(project_paths, runner)

    assert builder.build_dev() is False

    assert not project_paths.scratch_dir.exists()
    assert not project_paths.output_dir.exists()
    assert notifier.results == [False]


def test_compile_failure_is_logged(project_paths: ProjectPaths, caplog) -> None:
    runner = FakeToolchain(compile_returncode=2, compile_output="syntax error")
    builder, _ = _builder(project_paths, runner)

    builder.build_dev()

    assert "syntax error" in caplog.text
    assert "exit code 2" in caplog.text


def test_bundle_failure(project_paths: ProjectPaths) -> None:
    runner = FakeToolchain(bundle_returncode=1, bundle_output="Could not resolve")
    builder, _ = _builder(project_paths, runner, bundle_scripts=True)

    assert builder.build_dev() is False
    assert not project_paths.scratch_dir.exists()


def test_missing_sources_fail_before_side_effects(project_paths: ProjectPaths, fake_toolchain: FakeToolchain) -> None:
    (project_paths.src_scripts_dir / "main.ts").unlink()
    builder, _ = _builder(project_paths, fake_toolchain)

    assert builder.build_dev() is False
    assert fake_toolchain.calls == []
    assert not project_paths.output_dir.exists()


def test_missing_external_target(project_paths: ProjectPaths, fake_toolchain: FakeToolchain, tmp_path: Path) -> None:
    config = replace(default_config(project_paths.project_dir), minecraft_com_mojang_directory_path=str(tmp_path / "nowhere"))
    paths = ProjectPaths(project_dir=project_paths.project_dir, config=config)
    builder, _ = _builder(paths, fake_toolchain, copy_to_external_target=True)

    assert builder.build_dev() is False
    assert fake_toolchain.calls == []


def test_publish_to_external_target(project_paths: ProjectPaths, fake_toolchain: FakeToolchain, tmp_path: Path) -> None:
    com_mojang = tmp_path / "com.mojang"
    stale = com_mojang / "development_behavior_packs" / "gobli_BP" / "old.json"
    stale.parent.mkdir(parents=True)
    stale.write_text("{}", encoding="utf-8")
    config = replace(default_config(project_paths.project_dir), minecraft_com_mojang_directory_path=str(com_mojang))
    paths = ProjectPaths(project_dir=project_paths.project_dir, config=config)
    builder, _ = _builder(paths, fake_toolchain, copy_to_external_target=True)

    assert builder.build_dev() is True

    assert not stale.exists()
    assert (paths.external_bp_dir / "manifest.json").is_file()
    assert (paths.external_rp_dir / "textures" / "art.png").is_file()


def test_release_build_with_archives(project_paths: ProjectPaths, fake_toolchain: FakeToolchain) -> None:
    builder, _ = _builder(project_paths, fake_toolchain, create_zip=True, create_mcaddon=True)

    assert builder.build_release(VersionInfo(1, 2, 3, stage="beta", iteration=2)) is True

    bp = json.loads((project_paths.output_dir / "gobli_BP" / "manifest.json").read_text(encoding="utf-8"))
    assert bp["header"]["version"] == [1, 2, 3]
    assert "1.2.3-beta2" in bp["header"]["name"]
    mcaddon = project_paths.output_dir / "goblins_1.2.3-beta2.mcaddon"
    assert (project_paths.output_dir / "goblins_1.2.3-beta2.zip").is_file()
    with zipfile.ZipFile(mcaddon) as zf:
        assert "gobli_BP/manifest.json" in zf.namelist()
        assert "gobli_RP/textures/art.png" in zf.namelist()


def test_scratch_workspace_removed_on_error(tmp_path: Path) -> None:
    scratch = tmp_path / "temp"
    (scratch / "leftover").mkdir(parents=True)

    with pytest.raises(FilesystemError):
        with scratch_workspace(scratch) as path:
            assert path.is_dir()
            assert not (path / "leftover").exists()
            raise FilesystemError("boom")

    assert not scratch.exists()


def test_unexpected_errors_propagate(project_paths: ProjectPaths) -> None:
    def broken_runner(cmd, cwd):
        raise KeyError("internal")

    builder, _ = _builder(project_paths, broken_runner)

    with pytest.raises(KeyError):
        builder.build_dev()
    assert not project_paths.scratch_dir.exists()


def test_scratch_cleanup_failure_keeps_build_error(tmp_path: Path, monkeypatch, caplog) -> None:
    scratch = tmp_path / "temp"
    real_remove = orchestrator.remove_directory
    calls = []

    def remove_then_fail(path):
        calls.append(path)
        if len(calls) > 1:
            raise FilesystemError("locked", path)
        return real_remove(path)

    monkeypatch.setattr(orchestrator, "remove_directory", remove_then_fail)

    with pytest.raises(CompilationError) as e:
        with scratch_workspace(scratch):
            raise CompilationError("Failed to compile TypeScript scripts", returncode=2, output="syntax error")

    assert "syntax error" in str(e.value)
    assert "locked" in caplog.text


def test_scratch_cleanup_failure_on_success_is_raised(tmp_path: Path, monkeypatch) -> None:
    calls = []

    def remove_then_fail(path):
        calls.append(path)
        if len(calls) > 1:
            raise FilesystemError("locked", path)
        return False

    monkeypatch.setattr(orchestrator, "remove_directory", remove_then_fail)

    with pytest.raises(FilesystemError, match="locked"):
        with scratch_workspace(tmp_path / "temp"):
            pass


def test_one_ignore_matcher_shared_by_both_packs(project_paths: ProjectPaths, fake_toolchain: FakeToolchain, monkeypatch) -> None:
    seen = []
    real_copy = orchestrator.copy_directory

    def recording_copy(src, dst, ignore_patterns=()):
        seen.append(ignore_patterns)
        return real_copy(src, dst, ignore_patterns)

    monkeypatch.setattr(orchestrator, "copy_directory", recording_copy)
    builder, _ = _builder(project_paths, fake_toolchain)

    assert builder.build_dev() is True

    assert isinstance(seen[0], IgnoreMatcher)
    assert seen[0] is seen[1]
    assert not (project_paths.output_dir / "gobli_RP" / "textures" / "art.psd").exists()
