from .conversation import ConversationTurn, Role
from .diff import ChangeType, FileUnit, Hunk, LineChange, LineKind
from .review import (
    RefactorResult,
    ReviewBatch,
    ReviewComment,
    ReviewPayload,
    ReviewResult,
    ReviewStatus,
    Severity,
)
from .webhook import GitHubPullRequestEvent

__all__ = [
    "ChangeType",
    "ConversationTurn",
    "FileUnit",
    "GitHubPullRequestEvent",
    "Hunk",
    "LineChange",
    "LineKind",
    "RefactorResult",
    "ReviewBatch",
    "ReviewComment",
    "ReviewPayload",
    "ReviewResult",
    "ReviewStatus",
    "Role",
    "Severity",
]
