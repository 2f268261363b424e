# src/code_mentor/models/review.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .diff import FileUnit


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# Backends are free-form about severity wording.
SEVERITY_ALIASES = {
    "error": Severity.ERROR,
    "critical": Severity.ERROR,
    "high": Severity.ERROR,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "medium": Severity.WARNING,
    "info": Severity.INFO,
    "low": Severity.INFO,
    "suggestion": Severity.INFO,
}


class ReviewStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class EducationalLink(BaseModel):
    topic: str
    url: str


class ReviewComment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    line_number: int = Field(alias="lineNumber")
    severity: Severity = Severity.INFO
    text: str = Field(alias="comment")
    suggested_fix: str | None = Field(default=None, alias="suggestedFix")

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, value):
        if isinstance(value, Severity):
            return value
        return SEVERITY_ALIASES.get(str(value).strip().lower(), Severity.INFO)


class ReviewPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    summary: str = Field(default="", alias="overallFeedback")
    grade: str = Field(default="", alias="codeHealthScore")
    key_takeaway: str = Field(default="", alias="keyTakeaway")
    comments: list[ReviewComment] = Field(default_factory=list)
    educational_links: list[EducationalLink] = Field(default_factory=list, alias="educationalLinks")
    effort_estimation: str | None = Field(default=None, alias="effortEstimation")

    @field_validator("comments", "educational_links", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return [] if value is None else value


class ReviewResult(BaseModel):
    """Outcome of reviewing one FileUnit. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    target: FileUnit
    status: ReviewStatus
    payload: ReviewPayload = Field(default_factory=ReviewPayload)
    error_detail: str | None = None

    @classmethod
    def ok(cls, target: FileUnit, payload: ReviewPayload) -> "ReviewResult":
        return cls(target=target, status=ReviewStatus.OK, payload=payload)

    @classmethod
    def skipped(cls, target: FileUnit) -> "ReviewResult":
        return cls(target=target, status=ReviewStatus.SKIPPED)

    @classmethod
    def failed(cls, target: FileUnit, cause: str) -> "ReviewResult":
        comment = ReviewComment(
            line_number=1,
            severity=Severity.ERROR,
            text=f"Failed to get AI review: {cause}",
        )
        return cls(
            target=target,
            status=ReviewStatus.FAILED,
            payload=ReviewPayload(comments=[comment]),
            error_detail=cause,
        )


# One entry per requested unit, in input order.
ReviewBatch = list[ReviewResult]


class RefactorPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refactored_code: str = Field(alias="refactoredCode")
    explanation: str
    educational_links: list[EducationalLink] = Field(default_factory=list, alias="educationalLinks")


class RefactorResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_code: str = Field(alias="originalCode")
    refactored_code: str = Field(alias="refactoredCode")
    explanation: str
    educational_links: list[EducationalLink] = Field(default_factory=list, alias="educationalLinks")
