# src/code_mentor/models/diff.py
from dataclasses import dataclass, field
from enum import Enum


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class LineKind(str, Enum):
    CONTEXT = "context"
    INSERTION = "insertion"
    DELETION = "deletion"


@dataclass(frozen=True)
class LineChange:
    content: str
    kind: LineKind
    line_number: int
    """New-file line for insertions and context, old-file line for deletions."""


@dataclass(frozen=True)
class Hunk:
    old_start: int
    old_line_count: int
    new_start: int
    new_line_count: int
    changes: tuple[LineChange, ...] = ()

    @property
    def new_line_range(self) -> range:
        return range(self.new_start, self.new_start + self.new_line_count)

    def to_text(self) -> str:
        prefix = {LineKind.CONTEXT: " ", LineKind.INSERTION: "+", LineKind.DELETION: "-"}
        header = f"@@ -{self.old_start},{self.old_line_count} +{self.new_start},{self.new_line_count} @@"
        body = [f"{prefix[change.kind]}{change.content}" for change in self.changes]
        return "\n".join([header, *body])


@dataclass(frozen=True)
class FileUnit:
    old_path: str | None
    new_path: str | None
    change_type: ChangeType
    is_binary: bool = False
    hunks: tuple[Hunk, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.new_path is None and self.change_type != ChangeType.DELETED:
            raise ValueError(f"new_path is required for {self.change_type.value} files")

    @property
    def path(self) -> str:
        """Identifier used in prompts and reports."""
        return self.new_path or self.old_path or ""

    @property
    def diff_text(self) -> str:
        return "\n".join(hunk.to_text() for hunk in self.hunks)

    @property
    def added_lines(self) -> list[int]:
        return [
            change.line_number
            for hunk in self.hunks
            for change in hunk.changes
            if change.kind == LineKind.INSERTION
        ]
