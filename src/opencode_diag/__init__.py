"""OpenCode Diagnostics: find out which link between you and your AI coding agent is broken."""

from .__version__ import __version__
from .service import DiagnosticsService

__all__ = ['DiagnosticsService', '__version__']
