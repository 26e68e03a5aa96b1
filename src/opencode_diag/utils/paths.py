"""
OpenCode Diagnostics Path Constants

IMPORTANT: Always use get_real_user_home() instead of Path.home() when
the path should be in the user's home directory. This handles the case
where the tool is run with sudo (e.g. to read another user's process
table) but must still use the real user's settings, not root's.
"""

import os
from pathlib import Path
from typing import Optional


def get_real_user_home() -> Path:
    """
    Get the real user's home directory, even when running as root via sudo.

    Returns:
        Path to the real user's home directory
    """
    sudo_user = os.environ.get('SUDO_USER')
    if sudo_user and sudo_user != 'root':
        return Path(f'/home/{sudo_user}')
    return Path.home()


class DiagPaths:
    """Paths for opencode-diag settings and logs"""

    APP_DIR_NAME = 'opencode-diag'
    SETTINGS_FILE = 'settings.json'
    LOG_FILE = 'diag.log'

    @classmethod
    def get_config_dir(cls, override: Optional[os.PathLike] = None) -> Path:
        """~/.config/opencode-diag, or override when given."""
        if override:
            return Path(override).expanduser()
        return get_real_user_home() / '.config' / cls.APP_DIR_NAME

    @classmethod
    def get_settings_file(cls, override: Optional[os.PathLike] = None) -> Path:
        return cls.get_config_dir(override) / cls.SETTINGS_FILE

    @classmethod
    def get_log_file(cls, override: Optional[os.PathLike] = None) -> Path:
        return cls.get_config_dir(override) / cls.LOG_FILE
