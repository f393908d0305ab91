"""
version.py

Responsibility: release version values for pack manifests.

A version is a numeric triple plus a release stage and iteration. The game
only understands the triple; the human string is shown in pack names.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bedrock_build.errors import InvalidReleaseStage


class ReleaseStage(str, Enum):
    PREALPHA = "prealpha"
    ALPHA = "alpha"
    BETA = "beta"
    RC = "rc"
    STABLE = "stable"

    @classmethod
    def parse(cls, value: object) -> ReleaseStage:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise InvalidReleaseStage(
                f"{value!r} is not a valid release stage. Valid values: {', '.join(RELEASE_STAGE_NAMES)}"
            ) from e


RELEASE_STAGE_NAMES: tuple[str, ...] = tuple(stage.value for stage in ReleaseStage)


def _check_component(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Version component `{name}` must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"Version component `{name}` must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class VersionInfo:
    major: int
    minor: int
    patch: int
    stage: ReleaseStage = ReleaseStage.STABLE
    iteration: int = 1

    def __post_init__(self) -> None:
        for name in ("major", "minor", "patch"):
            _check_component(name, getattr(self, name))
        object.__setattr__(self, "stage", ReleaseStage.parse(self.stage))
        iteration = self.iteration
        if iteration is None or iteration <= 0:
            iteration = 1
        object.__setattr__(self, "iteration", int(iteration))

    def to_human_string(self) -> str:
        """
        Format as `major.minor.patch[-stage[iteration]]`.

        Stable releases carry no suffix. The iteration is only appended to a
        stage suffix, and only when it is greater than one: `1.2.0-beta3`.
        """
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.stage is not ReleaseStage.STABLE:
            text += f"-{self.stage.value}"
            if self.iteration > 1:
                text += str(self.iteration)
        return text

    def to_numeric_triple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return self.to_human_string()
