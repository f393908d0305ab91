"""
notify.py

Responsibility: optional audible notification when a build finishes.

A notification never affects the build result: player failures are logged
as warnings.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from bedrock_build.config import Config

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, success: bool) -> None: ...


class NullNotifier:
    def notify(self, success: bool) -> None:
        return None


class CommandNotifier:
    """
    Play a sound file with an external player, e.g. `["aplay", "-q"]` or
    `["afplay"]`. The sound path is appended as the last argument.
    """

    def __init__(self, command: Sequence[str], *, success_sound: str = "", failure_sound: str = "") -> None:
        self.command = list(command)
        self.success_sound = success_sound
        self.failure_sound = failure_sound

    def notify(self, success: bool) -> None:
        sound = self.success_sound if success else self.failure_sound
        if not self.command or not sound:
            return
        if not Path(sound).is_file():
            logger.warning("Notification sound not found: %s", sound)
            return
        try:
            subprocess.run(
                [*self.command, sound],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning("Failed playing notification sound %s: %s", sound, e)


def notifier_from_config(config: Config) -> Notifier:
    if not config.sound_player_command:
        return NullNotifier()
    return CommandNotifier(
        config.sound_player_command,
        success_sound=config.success_sound,
        failure_sound=config.failure_sound,
    )
