import asyncio
import json
import pytest
from ai_helpers import FakeProvider
from code_mentor.errors import InferenceError
from code_mentor.models.conversation import ConversationTurn, Role
from code_mentor.review.relay import relay, sse_events


@pytest.mark.asyncio
async def test_relay_forwards_tokens_in_order():
    tokens = ["def", " f", "():", "\n", "    pass"]
    provider = FakeProvider(tokens=tokens)

    received = [token async for token in relay(provider, "prompt")]

    assert received == tokens
    assert "".join(received) == "".join(tokens)
    assert provider.stream_closed


@pytest.mark.asyncio
async def test_relay_stops_after_backend_error():
    provider = FakeProvider(tokens=["a", "b", "c"], stream_error=InferenceError("connection reset"))

    received = [token async for token in relay(provider, "prompt")]

    assert received == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_relay_stops_when_caller_disconnects():
    provider = FakeProvider(tokens=[str(i) for i in range(100)])
    checks = 0

    async def is_disconnected():
        nonlocal checks
        checks += 1
        return checks > 3

    received = [token async for token in relay(provider, "prompt", is_disconnected=is_disconnected)]

    assert received == ["0", "1", "2"]
    assert provider.emitted < 100
    assert provider.stream_closed


@pytest.mark.asyncio
async def test_relay_closes_backend_when_consumer_stops():
    provider = FakeProvider(tokens=["a", "b", "c", "d"])
    stream = relay(provider, "prompt")

    assert await stream.__anext__() == "a"
    await stream.aclose()

    assert provider.stream_closed
    assert provider.emitted == 1


@pytest.mark.asyncio
async def test_relay_builds_assistant_turn():
    provider = FakeProvider(tokens=["Use ", "a ", "set."], stream_error=InferenceError("cut"))
    conversation = [
        ConversationTurn(role=Role.USER, content="How?"),
        ConversationTurn(role=Role.ASSISTANT, content=""),
    ]

    seen = []
    async for _ in relay(provider, "prompt", conversation=conversation):
        seen.append(conversation[-1].content)

    assert len(conversation) == 2
    assert seen == ["Use ", "Use a ", "Use a set."]
    assert conversation[-1].content == "Use a set."


@pytest.mark.asyncio
async def test_relay_is_not_restartable():
    provider = FakeProvider(tokens=["x"])

    first = [t async for t in relay(provider, "prompt")]
    second = [t async for t in relay(provider, "prompt")]

    assert first == second == ["x"]
    assert provider.prompts == ["prompt", "prompt"]


@pytest.mark.asyncio
async def test_sse_events_frames_tokens_as_json():
    async def tokens():
        yield "line one\n"
        await asyncio.sleep(0)
        yield 'say "hi"'

    frames = [frame async for frame in sse_events(tokens())]

    assert frames == ['data: "line one\\n"\n\n', 'data: "say \\"hi\\""\n\n']
    assert json.loads(frames[0][len("data: "):]) == "line one\n"
