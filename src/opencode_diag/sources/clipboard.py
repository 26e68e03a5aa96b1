"""
Clipboard sink that pipes text to the platform's copy command.
"""

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Optional

from ..core.errors import SinkUnavailable

logger = logging.getLogger(__name__)


def _candidate_commands() -> List[List[str]]:
    if sys.platform == 'darwin':
        return [['pbcopy']]
    if sys.platform.startswith('win'):
        return [['clip']]
    commands = []
    if os.environ.get('WAYLAND_DISPLAY'):
        commands.append(['wl-copy'])
    commands.extend([
        ['xclip', '-selection', 'clipboard'],
        ['xsel', '--clipboard', '--input'],
    ])
    return commands


class CommandClipboard:
    """Writes text to the system clipboard via an external command."""

    def __init__(self, command: Optional[List[str]] = None, timeout: float = 5.0):
        self._command = command
        self._timeout = timeout

    def resolve_command(self) -> List[str]:
        if self._command:
            return list(self._command)
        for command in _candidate_commands():
            if shutil.which(command[0]):
                return command
        raise SinkUnavailable("No clipboard command found (install xclip, xsel or wl-copy)")

    def write_text(self, text: str) -> None:
        command = self.resolve_command()
        try:
            result = subprocess.run(
                command,
                input=text,
                text=True,
                capture_output=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise SinkUnavailable(f"{command[0]} timed out") from e
        except (FileNotFoundError, OSError) as e:
            raise SinkUnavailable(f"Cannot run {command[0]}: {e}") from e

        if result.returncode != 0:
            raise SinkUnavailable(f"{command[0]} failed: {result.stderr.strip() or result.returncode}")
        logger.debug(f"Copied {len(text)} characters with {command[0]}")
