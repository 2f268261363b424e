# src/code_mentor/providers/openai_compat.py
import logging
from typing import AsyncIterator
import openai
from openai import AsyncOpenAI
from .base import LLMProvider
from code_mentor.errors import InferenceError, InferenceTimeout


logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: float = 120.0,
        default_headers: dict[str, str] | None = None,
    ):
        self.model = model
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            default_headers=default_headers,
            max_retries=0,
        )

    async def complete(self, prompt: str, *, json_mode: bool = False) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.5,
                **kwargs,
            )
        except openai.APITimeoutError as e:
            raise InferenceTimeout(f"{self.model} timed out") from e
        except openai.APIError as e:
            raise InferenceError(f"{self.model} request failed: {e}") from e

        if not response.choices:
            raise InferenceError(f"{self.model} returned no choices")
        text = response.choices[0].message.content or ""
        logger.info(f"{self.model} response length: {len(text)} chars")

        if not text.strip():
            raise InferenceError(f"{self.model} returned an empty response")
        return text

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                stream=True,
            )
        except openai.APITimeoutError as e:
            raise InferenceTimeout(f"{self.model} timed out") from e
        except openai.APIError as e:
            raise InferenceError(f"{self.model} request failed: {e}") from e

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                token = chunk.choices[0].delta.content
                if token:
                    yield token
        except openai.APITimeoutError as e:
            raise InferenceTimeout(f"{self.model} stream timed out") from e
        except openai.APIError as e:
            raise InferenceError(f"{self.model} stream failed: {e}") from e
        finally:
            await stream.close()
