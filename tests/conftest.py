from __future__ import annotations

import logging
import random
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import FakeClock, RecordingListener, WorkspaceBuilder  # noqa: E402


@pytest.fixture
def listener() -> RecordingListener:
    """Listener that records every event a session emits."""

    return RecordingListener()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TIMED_QUIZ_HOME", str(tmp_path / "ws-home"))
    for key in (
        "TIMED_QUIZ_CONFIG",
        "TIMED_QUIZ_BANK",
        "TIMED_QUIZ_SEED",
        "TIMED_QUIZ_QUOTA",
        "TIMED_QUIZ_TIME_PER_QUESTION",
        "TIMED_QUIZ_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_quiz_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("timed_quiz")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
