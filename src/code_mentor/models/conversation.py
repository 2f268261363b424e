# src/code_mentor/models/conversation.py
from enum import Enum
from pydantic import BaseModel


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    role: Role
    content: str


def last_user_question(conversation: list[ConversationTurn]) -> str:
    """Return the latest user question.

    Clients may send a blank assistant placeholder after the question; such
    trailing empty turns are ignored.
    """
    turns = list(conversation)
    while turns and turns[-1].role == Role.ASSISTANT and not turns[-1].content.strip():
        turns.pop()
    if not turns or turns[-1].role != Role.USER:
        raise ValueError("Conversation must end with a user question")
    return turns[-1].content
