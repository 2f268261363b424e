# src/code_mentor/review/engine.py
import asyncio
import json
import re
import logging
from typing import AsyncIterator, Awaitable, Callable, Iterable, Iterator, TypeVar
from pydantic import BaseModel, ValidationError
from code_mentor.errors import SchemaValidationError
from code_mentor.models.conversation import ConversationTurn, last_user_question
from code_mentor.models.diff import ChangeType, FileUnit, Hunk, LineChange, LineKind
from code_mentor.models.review import (
    RefactorPayload,
    RefactorResult,
    ReviewBatch,
    ReviewPayload,
    ReviewResult,
)
from code_mentor.providers.base import LLMProvider
from code_mentor.search.base import ContextAugmenter, NullAugmenter
from .parser import parse_diff
from .prompts import ReviewLens, Task, compose, language_for
from .relay import relay


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

WRAPPED_JSON = re.compile(r"\A```(?:json)?\s*(.*)```\Z", re.DOTALL)
FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)

REVIEW_REQUIRED_KEYS = ("overallFeedback",)


def _json_candidates(text: str) -> Iterator[str]:
    """The reply as-is, then the fenced block wrapping it, then the first fenced block."""
    text = text.strip()
    yield text
    for pattern in (WRAPPED_JSON, FENCED_JSON):
        match = pattern.search(text)
        if match:
            yield match.group(1)


def parse_payload(text: str, model: type[ModelT], required: Iterable[str] = ()) -> ModelT:
    """Parse backend text into `model`, raising SchemaValidationError."""
    error = None
    for candidate in _json_candidates(text):
        try:
            data = json.loads(candidate)
            break
        except json.JSONDecodeError as e:
            error = e
    else:
        raise SchemaValidationError(f"Response is not valid JSON: {error}") from error

    if not isinstance(data, dict):
        raise SchemaValidationError(f"Expected a JSON object, got {type(data).__name__}")

    missing = [key for key in required if key not in data]
    if missing:
        raise SchemaValidationError(f"Response is missing keys: {', '.join(missing)}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise SchemaValidationError(f"Response does not match {model.__name__}: {e}") from e


def snippet_unit(code: str, filename: str) -> FileUnit:
    """Wrap a pasted snippet as an added file so it reviews like a diff."""
    lines = code.split("\n")
    hunk = Hunk(
        old_start=0,
        old_line_count=0,
        new_start=1,
        new_line_count=len(lines),
        changes=tuple(
            LineChange(line, LineKind.INSERTION, number)
            for number, line in enumerate(lines, start=1)
        ),
    )
    return FileUnit(
        old_path=None,
        new_path=filename,
        change_type=ChangeType.ADDED,
        hunks=(hunk,),
    )


class ReviewEngine:
    def __init__(
        self,
        provider: LLMProvider,
        augmenter: ContextAugmenter | None = None,
        max_concurrency: int | None = None,
    ):
        self.provider = provider
        self.augmenter = augmenter or NullAugmenter()
        self.max_concurrency = max_concurrency

    async def review_diff(self, diff_text: str) -> ReviewBatch:
        """Parse and review a unified diff. MalformedDiffError propagates."""
        return await self.review_batch(parse_diff(diff_text))

    async def review_batch(self, units: Iterable[FileUnit]) -> ReviewBatch:
        """Review every unit concurrently; results keep the input order."""
        units = list(units)
        results: list[ReviewResult | None] = [None] * len(units)
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def run(index: int, unit: FileUnit) -> None:
            if semaphore is None:
                results[index] = await self._review_diff_unit(unit)
                return
            async with semaphore:
                results[index] = await self._review_diff_unit(unit)

        tasks = []
        for index, unit in enumerate(units):
            if self._is_skippable(unit):
                results[index] = ReviewResult.skipped(unit)
            else:
                if not unit.hunks:
                    logger.info(f"{unit.path} has no hunks ({unit.change_type.value}), reviewing without diff content")
                tasks.append(run(index, unit))

        logger.info(f"Reviewing {len(tasks)} of {len(units)} files")
        await asyncio.gather(*tasks)
        return results

    async def review_snippet(
        self,
        code: str,
        filename: str,
        lens: ReviewLens = ReviewLens.STANDARD,
    ) -> ReviewBatch:
        lens = ReviewLens(lens)
        unit = snippet_unit(code, filename)
        result = await self._isolated(
            unit,
            query=f"{lens.value} code review for {filename}",
            task=Task.SNIPPET_REVIEW,
            subject=code,
            metadata={"filename": filename, "lens": lens},
        )
        return [result]

    async def refactor(self, code: str, filename: str) -> RefactorResult:
        context = await self.augmenter.augment(f"refactoring techniques for {filename}")
        prompt = compose(Task.REFACTOR, code, {"filename": filename}, context)
        text = await self.provider.complete(prompt, json_mode=True)
        payload = parse_payload(text, RefactorPayload)
        return RefactorResult(
            original_code=code,
            refactored_code=payload.refactored_code,
            explanation=payload.explanation,
            educational_links=payload.educational_links,
        )

    async def explain(self, code: str, filename: str) -> str:
        language = language_for(filename)
        context = await self.augmenter.augment(f"explain {language} code snippet: {code[:50]}...")
        prompt = compose(Task.EXPLAIN, code, {"filename": filename}, context)
        return await self.provider.complete(prompt)

    async def follow_up(
        self,
        original_comment: str,
        conversation: list[ConversationTurn],
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> AsyncIterator[str]:
        """Prepare a follow-up answer and return its token stream.

        Validation and augmentation happen before the first token, so a bad
        conversation raises ValueError here rather than mid-stream.
        """
        question = last_user_question(conversation)
        context = await self.augmenter.augment(question)
        prompt = compose(Task.FOLLOW_UP, original_comment, {"conversation": conversation}, context)
        return relay(self.provider, prompt, conversation=conversation, is_disconnected=is_disconnected)

    def _is_skippable(self, unit: FileUnit) -> bool:
        """Deleted and binary files have no reviewable content."""
        return unit.change_type == ChangeType.DELETED or unit.is_binary

    async def _review_diff_unit(self, unit: FileUnit) -> ReviewResult:
        return await self._isolated(
            unit,
            query=f"code review best practices for {unit.path}",
            task=Task.DIFF_REVIEW,
            subject=unit,
            metadata={},
        )

    async def _isolated(self, unit: FileUnit, query: str, task: Task, subject, metadata: dict) -> ReviewResult:
        """Run one review; any failure becomes a failed result for this unit only."""
        try:
            context = await self.augmenter.augment(query)
            prompt = compose(task, subject, metadata, context)
            text = await self.provider.complete(prompt, json_mode=True)
            payload = parse_payload(text, ReviewPayload, REVIEW_REQUIRED_KEYS)
        except Exception as e:
            logger.error(f"LLM review failed for {unit.path}: {e}")
            return ReviewResult.failed(unit, f"{type(e).__name__}: {e}")

        return ReviewResult.ok(unit, payload)
