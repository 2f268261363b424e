# src/code_mentor/review/parser.py
from unidiff import PatchSet, PatchedFile
from unidiff.constants import RE_HUNK_HEADER
from unidiff.errors import UnidiffParseError

from code_mentor.errors import MalformedDiffError
from code_mentor.models.diff import ChangeType, FileUnit, Hunk, LineChange, LineKind


DEV_NULL = "/dev/null"

# File headers and git extended headers that may sit between hunks
HEADER_PREFIXES = (
    "diff --git ",
    "index ",
    "new file mode ",
    "deleted file mode ",
    "old mode ",
    "new mode ",
    "similarity index ",
    "dissimilarity index ",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
    "Binary files ",
    "--- ",
    "+++ ",
)


def _strip_prefix(filename: str | None) -> str | None:
    if not filename or filename == DEV_NULL:
        return None
    if filename.startswith(("a/", "b/")):
        return filename[2:]
    return filename


def _check_structure(diff_text: str) -> None:
    """Raise MalformedDiffError unless every line is a header or counted hunk body."""
    lines = diff_text.split("\n")
    if lines[-1] == "":
        lines.pop()

    old_left = new_left = 0
    for number, line in enumerate(lines, start=1):
        line = line.removesuffix("\r")
        if old_left > 0 or new_left > 0:
            tag = line[:1]
            if tag == "\\":
                continue
            if tag in (" ", ""):
                old_left -= 1
                new_left -= 1
            elif tag == "-":
                old_left -= 1
            elif tag == "+":
                new_left -= 1
            else:
                raise MalformedDiffError(f"Invalid unified diff: hunk ends early at line {number}")
            if old_left < 0 or new_left < 0:
                raise MalformedDiffError(f"Invalid unified diff: hunk body does not match its header at line {number}")
            continue

        if not line.strip() or line.startswith("\\") or line.startswith(HEADER_PREFIXES):
            continue
        match = RE_HUNK_HEADER.match(line)
        if match is None:
            raise MalformedDiffError(f"Invalid unified diff: unexpected line {number}: {line[:60]!r}")
        old_left = int(match.group(2) or 1)
        new_left = int(match.group(4) or 1)

    if old_left > 0 or new_left > 0:
        raise MalformedDiffError("Invalid unified diff: last hunk is shorter than its header")


def _change_type(patched_file: PatchedFile, old_path: str | None, new_path: str | None) -> ChangeType:
    if patched_file.is_removed_file or new_path is None:
        return ChangeType.DELETED
    if patched_file.is_added_file or old_path is None:
        return ChangeType.ADDED
    if old_path != new_path:
        return ChangeType.RENAMED
    return ChangeType.MODIFIED


def _convert_hunk(hunk) -> Hunk:
    changes = []
    for line in hunk:
        if line.is_added:
            changes.append(LineChange(line.value.rstrip("\n"), LineKind.INSERTION, line.target_line_no))
        elif line.is_removed:
            changes.append(LineChange(line.value.rstrip("\n"), LineKind.DELETION, line.source_line_no))
        elif line.is_context:
            changes.append(LineChange(line.value.rstrip("\n"), LineKind.CONTEXT, line.target_line_no))
        # "\ No newline at end of file" markers carry no content

    return Hunk(
        old_start=hunk.source_start,
        old_line_count=hunk.source_length,
        new_start=hunk.target_start,
        new_line_count=hunk.target_length,
        changes=tuple(changes),
    )


def parse_diff(diff_text: str) -> list[FileUnit]:
    """Parse unified diff text into FileUnits, in the order files appear.

    Pure function. Files without hunks (renames, mode changes, binaries) are
    kept. Raises MalformedDiffError when the text is not a unified diff.
    """
    if not diff_text.strip():
        return []

    _check_structure(diff_text)

    try:
        patch = PatchSet(diff_text)
    except UnidiffParseError as e:
        raise MalformedDiffError(f"Invalid unified diff: {e}") from e

    if len(patch) == 0:
        raise MalformedDiffError("Invalid unified diff: no file headers found")

    files = []
    for patched_file in patch:
        old_path = _strip_prefix(patched_file.source_file)
        new_path = _strip_prefix(patched_file.target_file)
        change_type = _change_type(patched_file, old_path, new_path)

        files.append(FileUnit(
            old_path=old_path,
            new_path=None if change_type == ChangeType.DELETED else new_path,
            change_type=change_type,
            is_binary=patched_file.is_binary_file,
            hunks=tuple(_convert_hunk(hunk) for hunk in patched_file),
        ))

    return files
