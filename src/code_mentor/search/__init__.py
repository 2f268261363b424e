# src/code_mentor/search/__init__.py
from .base import ContextAugmenter, NullAugmenter, NO_RESULTS
from .serper import SerperAugmenter

__all__ = ["ContextAugmenter", "NullAugmenter", "NO_RESULTS", "SerperAugmenter"]
