# tests/integration/test_openai_provider.py
import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock
from code_mentor.errors import InferenceError, InferenceTimeout
from code_mentor.providers.openai_compat import OpenAIProvider


def _mock_completion(text: str):
    """Create a mock ChatCompletion response."""
    choice = MagicMock()
    choice.message.content = text
    completion = MagicMock()
    completion.choices = [choice]
    return completion


def _mock_chunk(text: str | None):
    choice = MagicMock()
    choice.delta.content = text
    chunk = MagicMock()
    chunk.choices = [choice]
    return chunk


class FakeStream:
    def __init__(self, chunks, error: Exception | None = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise self.error

    async def close(self):
        self.closed = True


def _provider() -> OpenAIProvider:
    provider = OpenAIProvider(api_key="test-key", model="test-model")
    provider.client = AsyncMock()
    return provider


@pytest.mark.asyncio
async def test_openai_provider_complete_json_mode():
    provider = _provider()
    provider.client.chat.completions.create = AsyncMock(
        return_value=_mock_completion('{"overallFeedback": "Code looks good"}')
    )

    text = await provider.complete("Review this code", json_mode=True)

    assert text == '{"overallFeedback": "Code looks good"}'
    call_kwargs = provider.client.chat.completions.create.call_args.kwargs
    assert call_kwargs["model"] == "test-model"
    assert call_kwargs["messages"] == [{"role": "user", "content": "Review this code"}]
    assert call_kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_openai_provider_empty_response():
    provider = _provider()
    provider.client.chat.completions.create = AsyncMock(return_value=_mock_completion(""))

    with pytest.raises(InferenceError):
        await provider.complete("Review this code")


@pytest.mark.asyncio
async def test_openai_provider_timeout():
    provider = _provider()
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    provider.client.chat.completions.create = AsyncMock(side_effect=openai.APITimeoutError(request=request))

    with pytest.raises(InferenceTimeout):
        await provider.complete("Review this code")


@pytest.mark.asyncio
async def test_openai_provider_stream():
    provider = _provider()
    stream = FakeStream([_mock_chunk("Use "), _mock_chunk(None), _mock_chunk("a set.")])
    provider.client.chat.completions.create = AsyncMock(return_value=stream)

    tokens = [token async for token in provider.stream("Why?")]

    assert tokens == ["Use ", "a set."]
    assert provider.client.chat.completions.create.call_args.kwargs["stream"] is True
    assert stream.closed


@pytest.mark.asyncio
async def test_openai_provider_stream_error_after_tokens():
    provider = _provider()
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    stream = FakeStream([_mock_chunk("Partial")], error=openai.APIConnectionError(request=request))
    provider.client.chat.completions.create = AsyncMock(return_value=stream)

    received = []
    with pytest.raises(InferenceError):
        async for token in provider.stream("Why?"):
            received.append(token)

    assert received == ["Partial"]
    assert stream.closed
