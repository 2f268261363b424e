# src/code_mentor/review/report.py
from code_mentor.models.review import ReviewBatch, ReviewResult, ReviewStatus


DEFAULT_TITLE = "AI Code Review"


def _format_section(result: ReviewResult) -> str:
    payload = result.payload
    lines = [
        "---",
        f"#### {result.target.path} (Score: {payload.grade or 'N/A'})",
        f"**Key Takeaway:** *{payload.key_takeaway}*",
        f"**Overall Feedback:** {payload.summary}",
    ]
    if payload.comments:
        lines.append("**Issues Found:**")
        for comment in payload.comments:
            lines.append(
                f"* **[Line {comment.line_number} - {comment.severity.value.upper()}]**: {comment.text}"
            )
    return "\n".join(lines)


def build_digest(batch: ReviewBatch, title: str = DEFAULT_TITLE) -> str:
    """Render the ok results of a batch as markdown, in batch order.

    Skipped and failed results are left out; they stay visible in the batch.
    """
    sections = [_format_section(result) for result in batch if result.status == ReviewStatus.OK]

    header = f"### {title}\n\nI've reviewed these changes. Here's a summary:"
    if not sections:
        return f"### {title}\n\nNo reviewable changes."
    return "\n\n".join([header, *sections])
