"""
cli.py

Responsibility: CLI entrypoint for bedrock-build.

Commands:
- `dev`: build packs with persisted dev identifiers and the `DEV` version label
- `release`: build packs with fresh identifiers and an explicit version

Argument errors abort before anything is built. The configuration is loaded
here, once per command, and handed to the builder.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from bedrock_build import __version__
from bedrock_build.config import HIDDEN_DIR_NAME, Config, ProjectPaths, ensure_project_dirs, load_config
from bedrock_build.console import setup_logging
from bedrock_build.errors import BuildError, InvalidReleaseStage
from bedrock_build.notify import notifier_from_config
from bedrock_build.orchestrator import Builder, BuildOptions
from bedrock_build.version import RELEASE_STAGE_NAMES, VersionInfo

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"{value!r} must not be negative")
    return n


def _load_project(args: argparse.Namespace) -> tuple[Config, ProjectPaths]:
    project_dir = Path(args.project_dir).resolve()
    config = load_config(project_dir)
    paths = ProjectPaths(project_dir=project_dir, config=config)
    ensure_project_dirs(paths)
    return config, paths


def _make_builder(args: argparse.Namespace, config: Config, paths: ProjectPaths, **extra: object) -> Builder:
    options = BuildOptions.from_config(
        config,
        bundle_scripts=args.bundle_scripts,
        minify_bundle=args.minify_bundle,
        copy_to_external_target=args.copy_to_mc,
        **extra,
    )
    return Builder(config, paths, options, notifier=notifier_from_config(config))


def dev_cmd(args: argparse.Namespace) -> int:
    config, paths = _load_project(args)
    builder = _make_builder(args, config, paths)
    return 0 if builder.build_dev() else 1


def release_cmd(args: argparse.Namespace) -> int:
    major, minor, patch = args.release_version
    version = VersionInfo(major, minor, patch, stage=args.release_stage, iteration=args.release_iteration)
    logger.info("Release version: %s", version)

    config, paths = _load_project(args)
    builder = _make_builder(
        args,
        config,
        paths,
        create_zip=args.create_zip,
        create_mcaddon=args.create_mcaddon,
    )
    return 0 if builder.build_release(version) else 1


def _add_build_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--bundleScripts",
        dest="bundle_scripts",
        action="store_true",
        help="Bundle scripts into a single file",
    )
    p.add_argument(
        "--minifyBundle",
        dest="minify_bundle",
        action="store_true",
        default=None,
        help="Minify the bundle when --bundleScripts is set (default: config `minify_bundle`)",
    )
    p.add_argument(
        "--copyToMc",
        dest="copy_to_mc",
        action="store_true",
        help="Copy built packs to the local Minecraft development pack directories",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bedrock-build", description="Build Minecraft Bedrock addon packs")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--project-dir", default=".", help="Addon project directory (default: current directory)")
    p.add_argument("--verbose", action="store_true", help="Show debug output, including tool output")
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("dev", help="Build packs in dev mode")
    _add_build_flags(d)
    d.set_defaults(func=dev_cmd)

    r = sub.add_parser("release", help="Build packs in release mode")
    r.add_argument(
        "--releaseVersion",
        "-v",
        dest="release_version",
        nargs=3,
        type=_non_negative_int,
        required=True,
        metavar=("MAJOR", "MINOR", "PATCH"),
        help='Release version in "1 2 3" format',
    )
    r.add_argument(
        "--releaseStage",
        "-s",
        dest="release_stage",
        required=True,
        help=f"Release stage: {', '.join(RELEASE_STAGE_NAMES)}",
    )
    r.add_argument(
        "--releaseIteration",
        "-i",
        dest="release_iteration",
        type=int,
        default=1,
        help="Iteration index of the release (default: 1)",
    )
    _add_build_flags(r)
    r.add_argument("--createZip", dest="create_zip", action="store_true", help="Also write a .zip of the packs")
    r.add_argument(
        "--createMcaddon", dest="create_mcaddon", action="store_true", help="Also write a .mcaddon of the packs"
    )
    r.set_defaults(func=release_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    project_dir = Path(args.project_dir).resolve()
    if not project_dir.is_dir():
        setup_logging(None, verbose=bool(args.verbose))
        logger.error("Project directory does not exist: %s", project_dir)
        return 1
    setup_logging(project_dir / HIDDEN_DIR_NAME / "logs", verbose=bool(args.verbose))

    try:
        return int(args.func(args))
    except InvalidReleaseStage as e:
        logger.error("%s", e)
        return 2
    except BuildError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
