# src/code_mentor/review/relay.py
import json
import logging
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable
from code_mentor.models.conversation import ConversationTurn, Role
from code_mentor.providers.base import LLMProvider


logger = logging.getLogger(__name__)


def _assistant_turn(conversation: list[ConversationTurn]) -> ConversationTurn:
    """Reuse a trailing blank assistant placeholder, or append a new turn."""
    if conversation and conversation[-1].role == Role.ASSISTANT and not conversation[-1].content:
        return conversation[-1]
    turn = ConversationTurn(role=Role.ASSISTANT, content="")
    conversation.append(turn)
    return turn


async def relay(
    provider: LLMProvider,
    prompt: str,
    conversation: list[ConversationTurn] | None = None,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncIterator[str]:
    """Forward backend tokens one at a time, in arrival order.

    Ends when the backend stream ends, fails, or the caller goes away. Tokens
    already yielded are never retracted and no error is yielded. Each call
    starts a new backend request. When `conversation` is given, the assistant
    turn in it grows with every delivered token.
    """
    turn = _assistant_turn(conversation) if conversation is not None else None
    delivered = 0

    async with aclosing(provider.stream(prompt)) as tokens:
        try:
            async for token in tokens:
                if is_disconnected is not None and await is_disconnected():
                    logger.info(f"Caller disconnected after {delivered} tokens, closing backend stream")
                    break
                if turn is not None:
                    turn.content += token
                delivered += 1
                yield token
        except Exception as e:
            logger.error(f"Stream terminated after {delivered} tokens: {e}")


async def sse_events(tokens: AsyncIterator[str]) -> AsyncIterator[str]:
    """Frame tokens as Server-Sent Events, one JSON string per frame."""
    async for token in tokens:
        yield f"data: {json.dumps(token)}\n\n"
