# src/code_mentor/providers/__init__.py
from .base import LLMProvider
from .ollama import OllamaProvider
from .openai_compat import OpenAIProvider

__all__ = ["LLMProvider", "OllamaProvider", "OpenAIProvider"]
