"""
Error kinds raised by the report pipeline.

Both errors are terminal for a processing call. The pipeline converts them into the
failure variant of ProcessingResult, so they never reach the caller as exceptions.
"""

from typing import Optional


class WordSwapError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, message: str, operation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation_id = operation_id

    def __str__(self) -> str:
        return self.message


class DocumentParseError(WordSwapError):
    """The input bytes are not a readable PDF, or the PDF requires a password."""


class DocumentWriteError(WordSwapError):
    """The augmented PDF could not be built or serialized."""
