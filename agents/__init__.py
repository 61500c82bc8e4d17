# Processing Agents
# Specialized agents for scanning, validating and moving

from .base import BaseAgent
from .scanner import ScannerAgent, CandidateFile
from .validator import ValidatorAgent
from .mover import MoverAgent, MoveResult

__all__ = [
    'BaseAgent',
    'ScannerAgent',
    'CandidateFile',
    'ValidatorAgent',
    'MoverAgent',
    'MoveResult'
]
