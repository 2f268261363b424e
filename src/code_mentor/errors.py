# src/code_mentor/errors.py


class CodeMentorError(Exception):
    """Base class for all code_mentor errors."""


class MalformedDiffError(CodeMentorError):
    """Raised when text does not follow unified diff structure."""


class InferenceError(CodeMentorError):
    """Backend unreachable or returned a malformed response."""


class InferenceTimeout(InferenceError):
    """Backend did not answer in time."""


class SchemaValidationError(CodeMentorError):
    """Backend text could not be parsed into the expected payload."""


class AugmentationFailure(CodeMentorError):
    """Search lookup failed. Never escapes ContextAugmenter.augment()."""
