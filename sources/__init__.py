# Classification Oracles
# Adapters for language-model services that classify inbox files

from .base import ClassificationOracle
from .openai_chat import OpenAIChatOracle

__all__ = [
    'ClassificationOracle',
    'OpenAIChatOracle'
]
