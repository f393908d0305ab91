"""
bedrock_build package

Command-line build pipeline for Minecraft Bedrock addons.

Key responsibilities are split across modules:
- `ignore.py` / `copier.py`: copy pack sources, leaving out ignored entries
- `version.py`: release versions and stages
- `manifest.py`: render pack manifests from templates with fresh UUIDs
- `toolchain.py`: run the TypeScript compiler and the bundler
- `orchestrator.py`: sequence a build from sources to published packs
- `config.py`: per-project configuration and paths
- `cli.py`: CLI entrypoint (`dev` / `release`)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
