"""Exception types raised by the progress core."""


class ExamReviewError(Exception):
    """Base class for progress errors."""


class ValidationError(ExamReviewError):
    """Progress data does not match the persisted record shape."""


class ExportValidationError(ValidationError):
    """Sanitized export data still failed validation."""


class StorageUnavailableError(ExamReviewError):
    """The persistent medium cannot be read or written."""


class ParseError(ExamReviewError):
    """Import content is empty or not a JSON object."""
