"""
orchestrator.py

Responsibility: run one build from pack sources to published packs.

Stages, in order:
1) validate the configured source and target directories
2) clear the scratch workspace and stage BP/RP sources into it
3) compile scripts, then bundle them (or copy the compiled output as-is)
4) render and write both manifests
5) publish to the output directory and, optionally, the game's dev pack folders
6) (release) write .zip / .mcaddon archives

The scratch workspace is removed on every exit path. Recoverable failures
(`BuildError`) are reported and turn into a `False` result; anything else
propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path

from bedrock_build.archive import archive_name, create_archive
from bedrock_build.config import DEFAULT_IGNORE_PATTERNS, Config, ProjectPaths
from bedrock_build.console import log_success
from bedrock_build.copier import copy_directory, remove_directory
from bedrock_build.errors import BuildError, ConfigValidationError, FilesystemError
from bedrock_build.ignore import IgnoreMatcher
from bedrock_build.manifest import ManifestSet, ManifestTemplater
from bedrock_build.notify import Notifier, NullNotifier
from bedrock_build.toolchain import Runner, bundle_scripts, compile_scripts, run_command
from bedrock_build.version import VersionInfo

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "manifest.json"


@dataclass(frozen=True)
class BuildOptions:
    bundle_scripts: bool = False
    minify_bundle: bool = False
    copy_to_output: bool = True
    copy_to_external_target: bool = False
    external_modules: tuple[str, ...] = ("@minecraft",)
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    entry_script_name: str = "main"
    create_zip: bool = False
    create_mcaddon: bool = False

    @classmethod
    def from_config(cls, config: Config, **overrides: object) -> BuildOptions:
        """
        Defaults from `config`, then every override that is not None.
        """
        base = cls(
            minify_bundle=config.minify_bundle,
            external_modules=tuple(config.external_modules),
            ignore_patterns=tuple(config.compilation_ignore_patterns),
            entry_script_name=config.entry_script_file_name,
        )
        return replace(base, **{k: v for k, v in overrides.items() if v is not None})


@contextmanager
def scratch_workspace(path: Path) -> Iterator[Path]:
    """Fresh, empty directory at `path` that is removed on exit."""
    remove_directory(path)
    try:
        path.mkdir(parents=True)
    except OSError as e:
        raise FilesystemError(f"Failed creating scratch workspace {path}: {e}", path) from e
    try:
        yield path
    except BaseException:
        # The error that ended the build is the one reported.
        try:
            remove_directory(path)
        except FilesystemError as e:
            logger.warning("Failed removing scratch workspace: %s", e)
        raise
    remove_directory(path)
    logger.debug("Removed scratch workspace %s", path)


class Builder:
    def __init__(
        self,
        config: Config,
        paths: ProjectPaths,
        options: BuildOptions,
        *,
        templater: ManifestTemplater | None = None,
        runner: Runner | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config
        self.paths = paths
        self.options = options
        self.templater = templater or ManifestTemplater(
            paths.templates_dir,
            addon_name=config.full_addon_name,
            entry_script_name=options.entry_script_name,
        )
        self.runner = runner or run_command
        self.notifier = notifier or NullNotifier()

    def build_dev(self) -> bool:
        return self._build("DEV", self.templater.render_dev, None)

    def build_release(self, version: VersionInfo) -> bool:
        return self._build(f"RELEASE {version}", lambda: self.templater.render_release(version), version)

    def _build(self, label: str, render: Callable[[], ManifestSet], version: VersionInfo | None) -> bool:
        logger.info("Build started... (%s)", label)
        try:
            self._validate()
            with scratch_workspace(self.paths.scratch_dir):
                self._stage_sources()
                self._compile_scripts()
                if self.options.bundle_scripts:
                    self._bundle_scripts()
                else:
                    self._copy_compiled_scripts()
                logger.info("Generating manifests...")
                self._write_manifests(render())
                self._publish()
                if version is not None:
                    self._create_archives(version)
        except BuildError as e:
            logger.error("%s", e)
            logger.error("Build failed! (%s)", label)
            self.notifier.notify(False)
            return False

        log_success(logger, "Build finished! (%s)", label)
        self.notifier.notify(True)
        return True

    def _validate(self) -> None:
        p = self.paths
        for what, path in (
            ("Behavior pack source directory", p.src_bp_dir),
            ("Resource pack source directory", p.src_rp_dir),
            ("Scripts source directory", p.src_scripts_dir),
        ):
            if not path.is_dir():
                raise ConfigValidationError(f"{what} does not exist: {path}")

        entry = p.src_scripts_dir / f"{self.options.entry_script_name}.ts"
        if not entry.is_file():
            raise ConfigValidationError(f"Entry script does not exist: {entry}")

        if self.options.copy_to_external_target and not p.com_mojang_dir.is_dir():
            raise ConfigValidationError(
                f"Minecraft directory does not exist: {p.com_mojang_dir} "
                "(set `minecraft_com_mojang_directory_path` in the config file)"
            )

    def _stage_sources(self) -> None:
        logger.info("Copying pack sources...")
        p = self.paths
        matcher = IgnoreMatcher(self.options.ignore_patterns)
        copy_directory(p.src_bp_dir, p.scratch_bp_dir, matcher)
        copy_directory(p.src_rp_dir, p.scratch_rp_dir, matcher)

    def _compile_scripts(self) -> None:
        logger.info("Compiling TypeScript scripts...")
        output = compile_scripts(
            compiler=self.config.compiler_command,
            project_dir=self.paths.project_dir,
            out_dir=self.paths.scratch_compiled_dir,
            runner=self.runner,
        )
        if output.strip():
            logger.debug("%s", output.rstrip())

    def _bundle_scripts(self) -> None:
        logger.info("Bundling compiled scripts...")
        entry_name = f"{self.options.entry_script_name}.js"
        output = bundle_scripts(
            bundler=self.config.bundler_command,
            entry_file=self.paths.scratch_compiled_dir / entry_name,
            out_file=self.paths.scratch_bp_scripts_dir / entry_name,
            external_modules=self.options.external_modules,
            minify=self.options.minify_bundle,
            cwd=self.paths.project_dir,
            runner=self.runner,
        )
        if output.strip():
            logger.debug("%s", output.rstrip())

    def _copy_compiled_scripts(self) -> None:
        copy_directory(self.paths.scratch_compiled_dir, self.paths.scratch_bp_scripts_dir)

    def _write_manifests(self, manifests: ManifestSet) -> None:
        for pack_dir, text in (
            (self.paths.scratch_bp_dir, manifests.behavior_pack_manifest),
            (self.paths.scratch_rp_dir, manifests.resource_pack_manifest),
        ):
            path = pack_dir / MANIFEST_FILE_NAME
            try:
                path.write_text(text, encoding="utf-8", newline="\n")
            except OSError as e:
                raise FilesystemError(f"Failed writing {path}: {e}", path) from e

    def _publish_pair(self, bp_dest: Path, rp_dest: Path) -> None:
        for src, dst in ((self.paths.scratch_bp_dir, bp_dest), (self.paths.scratch_rp_dir, rp_dest)):
            remove_directory(dst)
            copy_directory(src, dst)
            logger.info("Copied %s to %s", src.name, dst)

    def _publish(self) -> None:
        p = self.paths
        if self.options.copy_to_output:
            logger.info("Copying packs to the output directory...")
            self._publish_pair(p.output_dir / p.scratch_bp_dir.name, p.output_dir / p.scratch_rp_dir.name)
        if self.options.copy_to_external_target:
            logger.info("Copying packs to Minecraft...")
            self._publish_pair(p.external_bp_dir, p.external_rp_dir)

    def _create_archives(self, version: VersionInfo) -> None:
        packs = (self.paths.scratch_bp_dir, self.paths.scratch_rp_dir)
        for enabled, extension in ((self.options.create_zip, "zip"), (self.options.create_mcaddon, "mcaddon")):
            if not enabled:
                continue
            name = archive_name(self.config.full_addon_name, version.to_human_string(), extension)
            dest = create_archive(packs, self.paths.output_dir / name)
            logger.info("Created archive %s", dest)
