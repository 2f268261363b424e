from enum import Enum
from typing import Any, Callable

from code_mentor.models.conversation import ConversationTurn
from code_mentor.models.diff import FileUnit
from code_mentor.search.base import NO_RESULTS


class Task(str, Enum):
    DIFF_REVIEW = "diff-review"
    SNIPPET_REVIEW = "snippet-review"
    REFACTOR = "refactor"
    EXPLAIN = "explain"
    FOLLOW_UP = "follow-up"


class ReviewLens(str, Enum):
    STANDARD = "standard"
    SECURITY = "security"
    PERFORMANCE = "performance"


RUBRIC = """You are a strict, meticulous principal engineer reviewing code. Find every real issue.
Grade harshly: an "A+" is rare and must be earned.

Evaluate the code on these criteria:
1. Logic & bugs: runtime errors, off-by-one errors, null dereferences, wrong conditions.
2. Security: injection (SQL, XSS, command), hardcoded secrets, broken access control.
3. Performance: quadratic loops, redundant work, blocking calls in hot paths.
4. Style: readability, naming, maintainability.
5. Documentation: missing or misleading docstrings and comments."""


REVIEW_SCHEMA = """Return ONLY valid JSON in this exact format:
{
  "overallFeedback": "<direct, critical summary of the code>",
  "codeHealthScore": "<letter grade from A+ to F>",
  "keyTakeaway": "<one sentence naming the most important issue>",
  "comments": [
    {
      "lineNumber": <line number in the NEW file>,
      "severity": "error|warning|info",
      "comment": "<what is wrong and why>",
      "suggestedFix": "<optional replacement code>"
    }
  ],
  "educationalLinks": [{"topic": "<topic>", "url": "<url>"}],
  "effortEstimation": "none|minimal|moderate|significant"
}

If the code has no issues, return an empty comments array and say so in overallFeedback."""


LENS_PREAMBLES = {
    ReviewLens.SECURITY: """You are an expert security auditor. Review the code from "{filename}" ONLY for security vulnerabilities.
Look for: XSS, SQL injection, command injection, buffer overflows, insecure dependencies,
hardcoded secrets, unsafe error handling, broken access control.
Ignore style, performance and documentation.""",
    ReviewLens.PERFORMANCE: """You are a principal engineer. Review the code from "{filename}" ONLY for performance bottlenecks.
Look for: quadratic loops, memory leaks, N+1 queries, blocking operations, poor algorithm choice.
Ignore style and security.""",
}


CONTEXT_BLOCK = """--- SEARCH CONTEXT ---
{context}
--- END CONTEXT ---"""


DIFF_REVIEW_PROMPT = """{rubric}

{schema}

{context_block}

Review the following diff of the file "{file_path}". Use the search context where it applies.
Only comment on changed lines. Changed lines in the new file: {added_lines}.
```diff
{diff_content}
```"""


SNIPPET_REVIEW_PROMPT = """{preamble}

{schema}

{context_block}

Review the following code from a file named "{filename}". Use the search context where it applies.
Line numbers start at 1 on the first line of the snippet.
```{language}
{code}
```"""


REFACTOR_PROMPT = """You are an expert software engineer.
Rewrite the following code from "{filename}" to improve readability, performance and maintainability.

{context_block}

Apply current best-practice refactoring techniques, informed by the search context.

Return ONLY valid JSON in this exact format:
{{
  "refactoredCode": "<complete, formatted refactored code, newlines as \\n>",
  "explanation": "<what you changed and why, newlines as \\n>",
  "educationalLinks": [{{"topic": "<topic>", "url": "<url>"}}]
}}

Code to refactor:
```{language}
{code}
```"""


EXPLAIN_PROMPT = """You are an expert software engineer and a clear communicator.
Explain what the following code (from a {language} file) does.

{context_block}

Walk through the logic step by step in plain English for a beginner.
Use the search context to keep the explanation accurate.
Format the answer with markdown (lists, bold, code blocks).

```{language}
{code}
```"""


FOLLOW_UP_PROMPT = """You are an AI code mentor. The user has a follow-up question about one of your review comments.

Your original comment: "{original_comment}"

Conversation so far (the user spoke last):
{history}

{context_block}

Answer the user's last question concisely, using the search results for up-to-date facts.
Respond in plain text, not JSON."""


def language_for(filename: str) -> str:
    """Guess a code fence language from the filename extension."""
    _, dot, ext = filename.rpartition(".")
    return ext.lower() if dot and ext else "text"


def _context_block(context_text: str) -> str:
    return CONTEXT_BLOCK.format(context=context_text.strip() or NO_RESULTS)


def _diff_review_prompt(unit: FileUnit, metadata: dict[str, Any], context_text: str) -> str:
    added = unit.added_lines
    return DIFF_REVIEW_PROMPT.format(
        rubric=RUBRIC,
        schema=REVIEW_SCHEMA,
        context_block=_context_block(context_text),
        file_path=unit.path,
        added_lines=", ".join(str(n) for n in added) if added else "none",
        diff_content=unit.diff_text,
    )


def _snippet_review_prompt(code: str, metadata: dict[str, Any], context_text: str) -> str:
    filename = metadata["filename"]
    lens = ReviewLens(metadata.get("lens", ReviewLens.STANDARD))
    if lens == ReviewLens.STANDARD:
        preamble = RUBRIC
    else:
        preamble = LENS_PREAMBLES[lens].format(filename=filename)

    return SNIPPET_REVIEW_PROMPT.format(
        preamble=preamble,
        schema=REVIEW_SCHEMA,
        context_block=_context_block(context_text),
        filename=filename,
        language=language_for(filename),
        code=code,
    )


def _refactor_prompt(code: str, metadata: dict[str, Any], context_text: str) -> str:
    filename = metadata["filename"]
    return REFACTOR_PROMPT.format(
        filename=filename,
        context_block=_context_block(context_text),
        language=language_for(filename),
        code=code,
    )


def _explain_prompt(code: str, metadata: dict[str, Any], context_text: str) -> str:
    return EXPLAIN_PROMPT.format(
        language=language_for(metadata["filename"]),
        context_block=_context_block(context_text),
        code=code,
    )


def _follow_up_prompt(original_comment: str, metadata: dict[str, Any], context_text: str) -> str:
    conversation: list[ConversationTurn] = metadata["conversation"]
    history = "\n".join(
        f"{turn.role.value}: {turn.content}" for turn in conversation if turn.content.strip()
    )
    return FOLLOW_UP_PROMPT.format(
        original_comment=original_comment,
        history=history,
        context_block=_context_block(context_text),
    )


TEMPLATES: dict[Task, Callable[[Any, dict[str, Any], str], str]] = {
    Task.DIFF_REVIEW: _diff_review_prompt,
    Task.SNIPPET_REVIEW: _snippet_review_prompt,
    Task.REFACTOR: _refactor_prompt,
    Task.EXPLAIN: _explain_prompt,
    Task.FOLLOW_UP: _follow_up_prompt,
}


def compose(
    task: Task,
    subject: FileUnit | str,
    metadata: dict[str, Any] | None = None,
    context_text: str = NO_RESULTS,
) -> str:
    """Build the prompt for a task.

    `subject` is the FileUnit for diff review, the original comment for
    follow-ups, and the code otherwise. Required metadata keys:
    snippet-review/refactor/explain need "filename" (snippet-review also takes
    "lens"), follow-up needs "conversation".
    """
    return TEMPLATES[Task(task)](subject, metadata or {}, context_text)
