"""Environment overrides, with optional .env support"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from a .env file in the working directory or project root
for env_file in (Path.cwd() / '.env', Path(__file__).parent.parent.parent.parent / '.env'):
    if env_file.exists():
        load_dotenv(env_file)
        break

ENV_LOG_LEVEL = 'OPENCODE_DIAG_LOG_LEVEL'
ENV_CONFIG_DIR = 'OPENCODE_DIAG_CONFIG_DIR'
ENV_PROBE_TIMEOUT = 'OPENCODE_DIAG_PROBE_TIMEOUT'
ENV_LOG_FILE = 'OPENCODE_DIAG_LOG_FILE'


def log_level() -> str:
    return os.getenv(ENV_LOG_LEVEL, 'WARNING')


def config_dir() -> Optional[str]:
    return os.getenv(ENV_CONFIG_DIR) or None


def log_file() -> Optional[str]:
    return os.getenv(ENV_LOG_FILE) or None


def probe_timeout() -> Optional[float]:
    """Per-probe timeout override in seconds, or None if unset or invalid."""
    raw = os.getenv(ENV_PROBE_TIMEOUT)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None
