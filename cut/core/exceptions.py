"""Exception hierarchy for unmarked test collection."""

from pathlib import Path


class CutError(Exception):
    """Base exception for all collect-unmarked-tests errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidMarkerConfigurationError(CutError, ValueError):
    """Raised when the configured marker list cannot be used."""

    def __init__(self, message: str, marker: str | None = None) -> None:
        super().__init__(message)
        self.marker = marker


class UnreadableFileError(CutError):
    """Raised when a candidate file cannot be read or decoded."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class MalformedSourceError(CutError):
    """Raised by the scanner when a construct never terminates."""

    def __init__(self, message: str, line_number: int, resume_at: int) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.resume_at = resume_at
