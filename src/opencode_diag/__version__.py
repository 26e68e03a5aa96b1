"""Version information for OpenCode Diagnostics"""

__version__ = "0.3.0"
__version_info__ = (0, 3, 0)
__release_date__ = "2026-10-16"


def get_full_version():
    """Get version with release date"""
    return f"{__version__} ({__release_date__})"
