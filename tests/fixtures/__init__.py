"""Shared testing fixtures for the timed_quiz test suite."""

from .clock import FakeClock  # noqa: F401
from .listener import RecordingListener  # noqa: F401
from .records import bank_line, make_record  # noqa: F401
from .workspace import WorkspaceBuilder  # noqa: F401

__all__ = [
    "FakeClock",
    "RecordingListener",
    "WorkspaceBuilder",
    "bank_line",
    "make_record",
]
