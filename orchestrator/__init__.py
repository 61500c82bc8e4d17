# Music Inbox Sorter
# Configuration, prompt handling and error types.
# The cycle itself lives in orchestrator.orchestrator (it imports the agents).

from .config import ConfigManager, SorterSettings
from .errors import SorterError, ConfigurationError, FilesystemError, OracleUnavailable
from .prompts import Decision, PromptBuilder, ResponseParser

__all__ = [
    'ConfigManager',
    'SorterSettings',
    'SorterError',
    'ConfigurationError',
    'FilesystemError',
    'OracleUnavailable',
    'Decision',
    'PromptBuilder',
    'ResponseParser'
]
