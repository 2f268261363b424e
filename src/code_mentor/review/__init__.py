from .parser import parse_diff
from .prompts import ReviewLens, Task, compose
from .engine import ReviewEngine, parse_payload
from .relay import relay, sse_events
from .report import build_digest

__all__ = [
    "parse_diff",
    "ReviewLens",
    "Task",
    "compose",
    "ReviewEngine",
    "parse_payload",
    "relay",
    "sse_events",
    "build_digest",
]
