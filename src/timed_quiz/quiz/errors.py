"""Exception types raised by the quiz engine."""

from __future__ import annotations

from typing import Optional


class QuizError(RuntimeError):
    """Base class for recoverable quiz engine errors."""


class MalformedRecordError(QuizError):
    """Raised when a bank line cannot be turned into a question record."""

    def __init__(self, reason: str, *, line_number: Optional[int] = None):
        self.reason = reason
        self.line_number = line_number
        if line_number is None:
            message = reason
        else:
            message = f"line {line_number}: {reason}"
        super().__init__(message)
