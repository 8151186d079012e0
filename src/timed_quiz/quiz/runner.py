"""Owning collaborator that wires a text source into quiz sessions."""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Callable, Optional

from .builder import build_session_queue
from .machine import QuizSession, SessionListener, SessionSettings
from .records import ParseResult, parse_bank

__all__ = [
    "TextSource",
    "MonotonicClock",
    "file_text_source",
    "QuizRunner",
]

logger = logging.getLogger(__name__)

TextSource = Callable[[], Optional[str]]


def file_text_source(path: Path) -> TextSource:
    """Return a text source that reads ``path`` on every call.

    A missing or unreadable file yields ``None`` instead of raising, so the
    engine treats it as an empty bank.
    """

    target = Path(path)

    def _read() -> Optional[str]:
        try:
            with target.open("r", encoding="utf-8", errors="replace") as fh:
                return fh.read()
        except OSError as exc:
            logger.warning(
                "Question bank unavailable",
                extra={"path": str(target), "error": str(exc)},
            )
            return None

    return _read


class MonotonicClock:
    """Report seconds elapsed between successive calls."""

    def __init__(self, now: Callable[[], float] = time.monotonic) -> None:
        self._now = now
        self._last: Optional[float] = None

    def elapsed(self) -> float:
        current = self._now()
        previous = self._last
        self._last = current
        if previous is None:
            return 0.0
        return max(0.0, current - previous)

    def reset(self) -> None:
        self._last = None


class QuizRunner:
    """Build sessions from a text source and rebuild them on restart."""

    def __init__(
        self,
        text_source: TextSource,
        listener: SessionListener,
        *,
        settings: Optional[SessionSettings] = None,
        rng: Optional[random.Random] = None,
        reload_on_restart: bool = True,
    ) -> None:
        self._text_source = text_source
        self._listener = listener
        self._settings = settings or SessionSettings()
        self._rng = rng if rng is not None else random.Random()
        self._reload_on_restart = reload_on_restart
        self._bank: Optional[ParseResult] = None
        self._session: Optional[QuizSession] = None
        self._cycle = 0

    @property
    def bank(self) -> Optional[ParseResult]:
        return self._bank

    @property
    def session(self) -> Optional[QuizSession]:
        return self._session

    @property
    def cycle(self) -> int:
        return self._cycle

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    def load_bank(self) -> ParseResult:
        """Acquire and parse the bank text; failures give an empty bank."""

        try:
            text = self._text_source()
        except OSError as exc:
            logger.warning(
                "Text source failed; continuing with an empty bank",
                extra={"error": str(exc)},
            )
            text = None
        self._bank = parse_bank(text)
        return self._bank

    def start(self) -> QuizSession:
        """Start a new session, acquiring the bank if needed."""

        bank = self._bank
        if bank is None or self._reload_on_restart:
            bank = self.load_bank()
        queue = build_session_queue(
            bank.records, quota=self._settings.quota, rng=self._rng
        )
        self._cycle += 1
        self._session = QuizSession(
            queue,
            self._listener,
            settings=self._settings,
            on_restart=self.restart,
        )
        logger.info(
            "Starting quiz cycle",
            extra={"cycle": self._cycle, "queue_size": len(queue)},
        )
        self._session.start()
        return self._session

    def restart(self) -> QuizSession:
        """Discard the current session and start a fresh one."""

        if self._session is not None:
            self._session.cancel()
        return self.start()

    def tick(self, elapsed: float) -> None:
        if self._session is not None:
            self._session.tick(elapsed)

    def submit_selection(self, index: object) -> bool:
        if self._session is None:
            return False
        return self._session.submit_selection(index)
