"""
config.py

Responsibility: load the per-project configuration and derive project paths.

The configuration lives in `.bedrock-build/config.yaml`. It is loaded once at
the start of a command and passed explicitly to everything that needs it.
When the file is missing, defaults derived from the project directory name
are written so the user has something to edit.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from bedrock_build.errors import ConfigValidationError, FilesystemError

logger = logging.getLogger(__name__)

HIDDEN_DIR_NAME = ".bedrock-build"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "**/.git",
    "**/.gitignore",
    "**/.gitkeep",
    "**/node_modules",
    "**/*.bbmodel",
    "**/*.psd",
    "**/*.gif",
)

DEFAULT_COM_MOJANG_DIR = str(
    Path.home()
    / "AppData"
    / "Local"
    / "Packages"
    / "Microsoft.MinecraftUWP_8wekyb3d8bbwe"
    / "LocalState"
    / "games"
    / "com.mojang"
)


@dataclass(frozen=True)
class Config:
    """Project configuration as stored in `config.yaml`."""

    full_addon_name: str
    short_addon_name: str
    behavior_pack_directory_name: str
    resource_pack_directory_name: str
    scripts_directory_name: str = "scripts"
    output_directory_name: str = "build"
    minecraft_com_mojang_directory_path: str = DEFAULT_COM_MOJANG_DIR
    external_modules: list[str] = field(default_factory=lambda: ["@minecraft"])
    entry_script_file_name: str = "main"
    compilation_ignore_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    minify_bundle: bool = False
    compiler_command: list[str] = field(default_factory=lambda: ["tsc"])
    bundler_command: list[str] = field(default_factory=lambda: ["esbuild"])
    sound_player_command: list[str] = field(default_factory=list)
    success_sound: str = ""
    failure_sound: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def default_config(project_dir: str | Path) -> Config:
    name = Path(project_dir).resolve().name or "addon"
    short = name[:5]
    return Config(
        full_addon_name=name,
        short_addon_name=short,
        behavior_pack_directory_name=f"{short}_BP",
        resource_pack_directory_name=f"{short}_RP",
    )


def _check_type(key: str, value: Any, expected: type) -> Any:
    if expected is list:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigValidationError(f"Config option `{key}` must be a list of strings.")
        return list(value)
    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigValidationError(f"Config option `{key}` must be true or false.")
        return value
    if not isinstance(value, str):
        raise ConfigValidationError(f"Config option `{key}` must be a string.")
    return value


def _field_types() -> dict[str, type]:
    types: dict[str, type] = {}
    for f in fields(Config):
        annotation = str(f.type)
        if annotation.startswith("list"):
            types[f.name] = list
        elif annotation == "bool":
            types[f.name] = bool
        else:
            types[f.name] = str
    return types


def parse_config(data: Any, *, defaults: Config) -> Config:
    """
    Merge a loaded YAML document over `defaults` and validate it.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError("Config file must be a mapping/object at the top level.")

    types = _field_types()
    unknown = sorted(str(k) for k in data if k not in types)
    if unknown:
        raise ConfigValidationError(f"Unknown config option(s): {', '.join(unknown)}")

    merged = defaults.to_dict()
    for key, value in data.items():
        merged[key] = _check_type(key, value, types[key])

    for key in (
        "full_addon_name",
        "behavior_pack_directory_name",
        "resource_pack_directory_name",
        "scripts_directory_name",
        "output_directory_name",
        "entry_script_file_name",
    ):
        if not merged[key].strip():
            raise ConfigValidationError(f"Config option `{key}` must not be empty.")

    return Config(**merged)


def save_config(config: Config, path: str | Path) -> None:
    p = Path(path)
    text = yaml.safe_dump(config.to_dict(), sort_keys=False, allow_unicode=True)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise FilesystemError(f"Failed writing config file {p}: {e}", p) from e


def load_config(project_dir: str | Path) -> Config:
    """
    Load `.bedrock-build/config.yaml` under `project_dir`, creating it with
    defaults when it does not exist.
    """
    defaults = default_config(project_dir)
    path = Path(project_dir) / HIDDEN_DIR_NAME / CONFIG_FILE_NAME

    if not path.exists():
        logger.warning("Config file does not exist at %s, using default options", path)
        save_config(defaults, path)
        logger.info("Saved config file at %s", path)
        return defaults

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise FilesystemError(f"Failed reading config file {path}: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Config file {path} is not valid YAML: {e}") from e

    config = parse_config(data, defaults=defaults)
    logger.info("Loaded config file at %s", path)
    return config


@dataclass(frozen=True)
class ProjectPaths:
    """Every location a build reads from or writes to."""

    project_dir: Path
    config: Config

    @property
    def hidden_dir(self) -> Path:
        return self.project_dir / HIDDEN_DIR_NAME

    @property
    def config_file(self) -> Path:
        return self.hidden_dir / CONFIG_FILE_NAME

    @property
    def templates_dir(self) -> Path:
        return self.hidden_dir / "manifest_templates"

    @property
    def logs_dir(self) -> Path:
        return self.hidden_dir / "logs"

    @property
    def scratch_dir(self) -> Path:
        return self.hidden_dir / "temp"

    # Sources

    @property
    def src_bp_dir(self) -> Path:
        return self.project_dir / self.config.behavior_pack_directory_name

    @property
    def src_rp_dir(self) -> Path:
        return self.project_dir / self.config.resource_pack_directory_name

    @property
    def src_scripts_dir(self) -> Path:
        return self.project_dir / self.config.scripts_directory_name

    # Scratch

    @property
    def scratch_bp_dir(self) -> Path:
        return self.scratch_dir / self.config.behavior_pack_directory_name

    @property
    def scratch_bp_scripts_dir(self) -> Path:
        return self.scratch_bp_dir / "scripts"

    @property
    def scratch_rp_dir(self) -> Path:
        return self.scratch_dir / self.config.resource_pack_directory_name

    @property
    def scratch_compiled_dir(self) -> Path:
        return self.scratch_dir / f"{self.config.behavior_pack_directory_name}_scripts"

    # Outputs

    @property
    def output_dir(self) -> Path:
        return self.project_dir / self.config.output_directory_name

    @property
    def com_mojang_dir(self) -> Path:
        return Path(self.config.minecraft_com_mojang_directory_path).expanduser()

    @property
    def external_bp_dir(self) -> Path:
        return self.com_mojang_dir / "development_behavior_packs" / self.config.behavior_pack_directory_name

    @property
    def external_rp_dir(self) -> Path:
        return self.com_mojang_dir / "development_resource_packs" / self.config.resource_pack_directory_name


def ensure_project_dirs(paths: ProjectPaths) -> None:
    """Create the hidden project directory and its `.gitignore`."""
    gitignore = paths.hidden_dir / ".gitignore"
    try:
        paths.templates_dir.mkdir(parents=True, exist_ok=True)
        if not gitignore.exists():
            gitignore.write_text("logs/\ntemp/\n", encoding="utf-8", newline="\n")
    except OSError as e:
        raise FilesystemError(f"Failed creating {paths.hidden_dir}: {e}", paths.hidden_dir) from e
