# Utilities
# Standalone passes over an already organized library

from .tag_normalizer import TagNormalizer

__all__ = ['TagNormalizer']
