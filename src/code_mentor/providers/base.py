# src/code_mentor/providers/base.py
from abc import ABC, abstractmethod
from typing import AsyncIterator


class LLMProvider(ABC):
    """Inference backend.

    Implementations raise InferenceTimeout / InferenceError on failure and
    never retry.
    """

    @abstractmethod
    async def complete(self, prompt: str, *, json_mode: bool = False) -> str:
        """Send prompt and return the whole response text."""
        pass

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Send prompt and yield response fragments as they arrive."""
        pass
