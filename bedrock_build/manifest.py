"""
manifest.py

Responsibility: render behavior-pack and resource-pack manifests from templates.

Templates are JSON documents with `<<<NAME>>>` placeholders. Rendering is a
single Jinja2 pass over an explicit substitution map, configured with
`<<<` / `>>>` as variable delimiters and `StrictUndefined`, so an unknown
placeholder is an error rather than an empty string.

Template files live in `.bedrock-build/manifest_templates/`:
- `release-bp.json` / `release-rp.json`: templates with placeholders, rendered
  with fresh identifiers on every release build
- `dev-bp.json` / `dev-rp.json`: generated once from the release templates and
  reused by every dev build, so a locally installed dev pack keeps its identity
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from jinja2 import Environment, StrictUndefined, TemplateError

from bedrock_build.errors import FilesystemError, ManifestRenderError
from bedrock_build.version import VersionInfo

logger = logging.getLogger(__name__)

UUID_HEADER = "UUID_HEADER"
UUID_MODULE = "UUID_MODULE"
UUID_SCRIPT = "UUID_SCRIPT"
UUID_RP_HEADER = "UUID_RP_HEADER"
VERSION_SYSTEM = "VERSION_SYSTEM"
VERSION_HUMAN = "VERSION_HUMAN"

PLACEHOLDERS: tuple[str, ...] = (
    UUID_HEADER,
    UUID_MODULE,
    UUID_SCRIPT,
    UUID_RP_HEADER,
    VERSION_SYSTEM,
    VERSION_HUMAN,
)

DEV_VERSION_SYSTEM = (1, 0, 0)
DEV_VERSION_HUMAN = "DEV"

DEV_BP_TEMPLATE_NAME = "dev-bp.json"
DEV_RP_TEMPLATE_NAME = "dev-rp.json"
RELEASE_BP_TEMPLATE_NAME = "release-bp.json"
RELEASE_RP_TEMPLATE_NAME = "release-rp.json"

_LEFTOVER_TOKEN_RE = re.compile(r"<<<\s*[A-Za-z_][A-Za-z0-9_]*\s*>>>")

_DEFAULT_BP_TEMPLATE = """{
  "format_version": 2,
  "header": {
    "description": "{{ addon_name }} behavior pack",
    "name": "{{ addon_name }} §eBP §6<<<VERSION_HUMAN>>>§r",
    "uuid": "<<<UUID_HEADER>>>",
    "version": [<<<VERSION_SYSTEM>>>],
    "min_engine_version": [1, 21, 0]
  },
  "modules": [
    {
      "description": "Behavior pack",
      "type": "data",
      "uuid": "<<<UUID_MODULE>>>",
      "version": [<<<VERSION_SYSTEM>>>]
    },
    {
      "description": "Scripts",
      "language": "javascript",
      "type": "script",
      "uuid": "<<<UUID_SCRIPT>>>",
      "version": [<<<VERSION_SYSTEM>>>],
      "entry": "scripts/{{ entry_script }}.js"
    }
  ],
  "dependencies": [
    {
      "uuid": "<<<UUID_RP_HEADER>>>",
      "version": [<<<VERSION_SYSTEM>>>]
    },
    {
      "module_name": "@minecraft/server",
      "version": "1.11.0"
    },
    {
      "module_name": "@minecraft/server-ui",
      "version": "1.1.0"
    }
  ]
}
"""

_DEFAULT_RP_TEMPLATE = """{
  "format_version": 2,
  "header": {
    "description": "{{ addon_name }} resource pack",
    "name": "{{ addon_name }} §eRP §6<<<VERSION_HUMAN>>>§r",
    "uuid": "<<<UUID_HEADER>>>",
    "version": [<<<VERSION_SYSTEM>>>],
    "min_engine_version": [1, 21, 0]
  },
  "modules": [
    {
      "description": "Resource pack",
      "type": "resources",
      "uuid": "<<<UUID_MODULE>>>",
      "version": [<<<VERSION_SYSTEM>>>]
    }
  ]
}
"""


def generate_identifier() -> str:
    """Random (version 4) UUID in canonical text form."""
    return str(uuid.uuid4())


# Fills in the built-in templates; `<<<NAME>>>` placeholders pass through untouched.
_defaults_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def default_templates(addon_name: str = "Untitled Addon", entry_script_name: str = "main") -> tuple[str, str]:
    """
    Built-in (behavior pack, resource pack) templates.
    """
    # Values land inside JSON strings.
    name = json.dumps(addon_name, ensure_ascii=False)[1:-1]
    entry = json.dumps(entry_script_name, ensure_ascii=False)[1:-1]
    bp = _defaults_env.from_string(_DEFAULT_BP_TEMPLATE).render(addon_name=name, entry_script=entry)
    rp = _defaults_env.from_string(_DEFAULT_RP_TEMPLATE).render(addon_name=name)
    return bp, rp


@dataclass(frozen=True)
class ManifestSet:
    behavior_pack_manifest: str
    resource_pack_manifest: str


_env = Environment(
    variable_start_string="<<<",
    variable_end_string=">>>",
    block_start_string="<<<%",
    block_end_string="%>>>",
    comment_start_string="<<<#",
    comment_end_string="#>>>",
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def render_template(text: str, values: Mapping[str, str], *, name: str = "<template>") -> str:
    """
    Replace every occurrence of every `<<<NAME>>>` placeholder in one pass.

    Raises ManifestRenderError for unknown placeholders and if any placeholder
    marker survives rendering.
    """
    try:
        out = _env.from_string(text).render(**values)
    except TemplateError as e:
        raise ManifestRenderError(f"Failed rendering manifest template {name}: {e}") from e

    leftover = _LEFTOVER_TOKEN_RE.search(out)
    if leftover:
        raise ManifestRenderError(f"Unreplaced placeholder {leftover.group(0)} in {name}")
    return out


def _version_values(system: tuple[int, int, int], human: str) -> dict[str, str]:
    return {
        VERSION_SYSTEM: ",".join(str(n) for n in system),
        VERSION_HUMAN: human,
    }


def _write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise FilesystemError(f"Failed writing {path}: {e}", path) from e


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Failed reading {path}: {e}", path) from e


class ManifestTemplater:
    def __init__(
        self,
        templates_dir: str | Path,
        *,
        addon_name: str = "Untitled Addon",
        entry_script_name: str = "main",
        generate_id: Callable[[], str] = generate_identifier,
    ) -> None:
        self.templates_dir = Path(templates_dir)
        self._defaults = default_templates(addon_name, entry_script_name)
        self._generate_id = generate_id

    @property
    def dev_bp_path(self) -> Path:
        return self.templates_dir / DEV_BP_TEMPLATE_NAME

    @property
    def dev_rp_path(self) -> Path:
        return self.templates_dir / DEV_RP_TEMPLATE_NAME

    @property
    def release_bp_path(self) -> Path:
        return self.templates_dir / RELEASE_BP_TEMPLATE_NAME

    @property
    def release_rp_path(self) -> Path:
        return self.templates_dir / RELEASE_RP_TEMPLATE_NAME

    def _load_template(self, path: Path, default: str) -> str:
        if path.is_file():
            return _read_text(path)
        logger.warning("Manifest template %s does not exist, using the built-in default", path)
        _write_text(path, default)
        logger.info("Saved default manifest template at %s", path)
        return default

    def ensure_templates(self) -> tuple[str, str]:
        """
        Return the release (behavior pack, resource pack) templates, writing the
        built-in defaults for any that are missing.
        """
        bp_default, rp_default = self._defaults
        return (
            self._load_template(self.release_bp_path, bp_default),
            self._load_template(self.release_rp_path, rp_default),
        )

    def _render_pair(self, bp_template: str, rp_template: str, version: dict[str, str]) -> ManifestSet:
        rp_header = self._generate_id()
        bp_values = {
            UUID_HEADER: self._generate_id(),
            UUID_MODULE: self._generate_id(),
            UUID_SCRIPT: self._generate_id(),
            UUID_RP_HEADER: rp_header,
            **version,
        }
        rp_values = {
            UUID_HEADER: rp_header,
            UUID_MODULE: self._generate_id(),
            UUID_RP_HEADER: rp_header,
            **version,
        }
        return ManifestSet(
            behavior_pack_manifest=render_template(bp_template, bp_values, name="behavior pack manifest"),
            resource_pack_manifest=render_template(rp_template, rp_values, name="resource pack manifest"),
        )

    def render_release(self, version: VersionInfo) -> ManifestSet:
        """Render both manifests with fresh identifiers and the given version."""
        bp_template, rp_template = self.ensure_templates()
        values = _version_values(version.to_numeric_triple(), version.to_human_string())
        return self._render_pair(bp_template, rp_template, values)

    def render_dev(self) -> ManifestSet:
        """
        Render both manifests for a dev build.

        Identifiers are generated once and persisted in the dev template files;
        both files are regenerated together if either is missing so the
        resource-pack dependency stays consistent.
        """
        values = _version_values(DEV_VERSION_SYSTEM, DEV_VERSION_HUMAN)

        if not (self.dev_bp_path.is_file() and self.dev_rp_path.is_file()):
            logger.warning("DEV manifest templates are missing, generating new pack identifiers")
            bp_template, rp_template = self.ensure_templates()
            manifests = self._render_pair(bp_template, rp_template, values)
            _write_text(self.dev_bp_path, manifests.behavior_pack_manifest)
            _write_text(self.dev_rp_path, manifests.resource_pack_manifest)
            logger.info("Saved DEV manifest templates in %s", self.templates_dir)
            return manifests

        return ManifestSet(
            behavior_pack_manifest=render_template(
                _read_text(self.dev_bp_path), values, name=DEV_BP_TEMPLATE_NAME
            ),
            resource_pack_manifest=render_template(
                _read_text(self.dev_rp_path), values, name=DEV_RP_TEMPLATE_NAME
            ),
        )
