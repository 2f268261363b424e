# src/code_mentor/providers/ollama.py
import json
import logging
from typing import Any, AsyncIterator
import httpx
from .base import LLMProvider
from code_mentor.errors import InferenceError, InferenceTimeout


logger = logging.getLogger(__name__)


class OllamaProvider(LLMProvider):
    def __init__(self, base_url: str = "http://127.0.0.1:11434", model: str = "qwen2:0.5b", timeout: float = 120.0):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    def _body(self, prompt: str, stream: bool, json_mode: bool = False) -> dict[str, Any]:
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": stream,
        }
        if json_mode:
            body["format"] = "json"
        return body

    async def complete(self, prompt: str, *, json_mode: bool = False) -> str:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.chat_url,
                    json=self._body(prompt, stream=False, json_mode=json_mode),
                    timeout=self.timeout,
                )
                response.raise_for_status()
            data = response.json()
            text = data["message"]["content"]
        except httpx.TimeoutException as e:
            raise InferenceTimeout(f"Ollama timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Ollama request failed: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise InferenceError(f"Malformed Ollama response: {e}") from e

        logger.info(f"Ollama response length: {len(text)} chars")
        if not text.strip():
            raise InferenceError("Ollama returned an empty response")
        return text

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        try:
            async with httpx.AsyncClient() as client:
                async with client.stream(
                    "POST",
                    self.chat_url,
                    json=self._body(prompt, stream=True),
                    timeout=self.timeout,
                ) as response:
                    response.raise_for_status()
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        chunk = json.loads(line)
                        if "error" in chunk:
                            raise InferenceError(f"Ollama stream error: {chunk['error']}")
                        token = (chunk.get("message") or {}).get("content", "")
                        if token:
                            yield token
                        if chunk.get("done"):
                            break
        except httpx.TimeoutException as e:
            raise InferenceTimeout(f"Ollama stream timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Ollama stream failed: {e}") from e
        except ValueError as e:
            raise InferenceError(f"Malformed Ollama stream chunk: {e}") from e
