"""Tick-driven state machine for a timed multiple-choice session.

The machine never blocks or schedules work on its own. The question
countdown, the feedback dwell and the restart countdown are timed phases
that only move forward when the owner calls :meth:`QuizSession.tick` with
the seconds elapsed since the previous call. Everything the UI needs is
pushed to a :class:`SessionListener`; the only inbound call is
:meth:`QuizSession.submit_selection`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from .builder import DEFAULT_QUOTA
from .records import OPTION_COUNT, QuestionRecord

__all__ = [
    "Phase",
    "OptionStyle",
    "option_styles",
    "SessionSettings",
    "SessionState",
    "SessionListener",
    "QuizSession",
]

logger = logging.getLogger(__name__)

RestartTrigger = Callable[[], None]


class Phase(Enum):
    """Lifecycle phases of a single question."""

    PRESENTING = "presenting"
    AWAITING_ANSWER = "awaiting_answer"
    FEEDBACK = "feedback"
    FINISHED = "finished"


class OptionStyle(Enum):
    """Styling signal for an option button during feedback."""

    NEUTRAL = "neutral"
    CORRECT = "correct"
    WRONG = "wrong"


def option_styles(
    correct_index: int, chosen: Optional[int]
) -> tuple[OptionStyle, ...]:
    """Return per-option styles for a feedback event.

    The true answer is always marked correct. A chosen option that is not
    the answer is marked wrong; ``chosen=None`` (timeout or forfeit) marks
    nothing else.
    """

    styles = [OptionStyle.NEUTRAL] * OPTION_COUNT
    if chosen is not None and chosen != correct_index:
        styles[chosen] = OptionStyle.WRONG
    styles[correct_index] = OptionStyle.CORRECT
    return tuple(styles)


@dataclass(frozen=True)
class SessionSettings:
    """Timing and scoring parameters for a session."""

    time_per_question: float = 10.0
    quota: int = DEFAULT_QUOTA
    feedback_dwell: float = 1.5
    restart_delay: float = 3.0
    points_per_correct: int = 10

    def __post_init__(self) -> None:
        if self.time_per_question <= 0:
            raise ValueError("time_per_question must be > 0")
        if self.quota < 0:
            raise ValueError("quota must be >= 0")
        if self.feedback_dwell < 0:
            raise ValueError("feedback_dwell must be >= 0")
        if self.restart_delay < 0:
            raise ValueError("restart_delay must be >= 0")
        if self.points_per_correct < 0:
            raise ValueError("points_per_correct must be >= 0")


@dataclass
class SessionState:
    """Mutable per-session values owned by :class:`QuizSession`."""

    current_index: int = 0
    score: int = 0
    time_remaining: float = 0.0
    phase: Phase = Phase.PRESENTING
    selection: Optional[int] = None
    dwell_remaining: float = 0.0
    restart_remaining: float = 0.0


class SessionListener(Protocol):
    """Receiver for the events a session emits to its UI."""

    def on_phase_changed(self, phase: Phase) -> None: ...

    def on_question_presented(
        self, text: str, options: Sequence[str]
    ) -> None: ...

    def on_tick(self, remaining: float) -> None: ...

    def on_restart_tick(self, remaining: int) -> None: ...

    def on_feedback(
        self, correct_index: int, chosen: Optional[int], score: int
    ) -> None: ...

    def on_options_reset(self) -> None: ...

    def on_input_enabled(self, enabled: bool) -> None: ...

    def on_finished(self, final_score: int) -> None: ...


class QuizSession:
    """Drive one pass through a session queue."""

    def __init__(
        self,
        queue: Sequence[QuestionRecord],
        listener: SessionListener,
        *,
        settings: Optional[SessionSettings] = None,
        on_restart: Optional[RestartTrigger] = None,
    ) -> None:
        self._queue = tuple(queue)
        self._listener = listener
        self._settings = settings or SessionSettings()
        self._on_restart = on_restart
        self._state = SessionState()
        self._started = False
        self._superseded = False
        self._restart_fired = False
        self._input_enabled: Optional[bool] = None
        self._last_restart_tick: Optional[int] = None

    @property
    def queue(self) -> tuple[QuestionRecord, ...]:
        return self._queue

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def state(self) -> SessionState:
        """Return a copy of the current state."""

        return replace(self._state)

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def question(self) -> Optional[QuestionRecord]:
        index = self._state.current_index
        if self._state.phase is Phase.FINISHED or index >= len(self._queue):
            return None
        return self._queue[index]

    @property
    def active(self) -> bool:
        return self._started and not self._superseded

    @property
    def restart_fired(self) -> bool:
        return self._restart_fired

    def start(self) -> None:
        if self._started:
            raise RuntimeError("Session has already been started.")
        self._started = True
        self._state = SessionState()
        logger.info(
            "Session started", extra={"queue_size": len(self._queue)}
        )
        if self._queue:
            self._present()
        else:
            self._finish()

    def cancel(self) -> None:
        """Supersede the session; later ticks and selections are no-ops."""

        if self._superseded:
            return
        self._superseded = True
        logger.debug(
            "Session cancelled", extra={"phase": self._state.phase.value}
        )

    def tick(self, elapsed: float) -> None:
        """Advance the active timed phase by ``elapsed`` seconds."""

        if elapsed < 0:
            raise ValueError("elapsed must be >= 0")
        if not self.active:
            return
        phase = self._state.phase
        if phase is Phase.AWAITING_ANSWER:
            self._tick_answer(elapsed)
        elif phase is Phase.FEEDBACK:
            self._tick_feedback(elapsed)
        elif phase is Phase.FINISHED:
            self._tick_restart(elapsed)

    def submit_selection(self, index: object) -> bool:
        """Answer the current question with option ``index``.

        Only honoured while awaiting an answer; returns ``False`` when the
        event is ignored. An integer outside ``0..3`` forfeits the question
        and is scored exactly like a timeout.
        """

        phase = self._state.phase
        if not self.active or phase is not Phase.AWAITING_ANSWER:
            logger.debug(
                "Ignored selection outside the answer window",
                extra={"selection": repr(index), "phase": phase.value},
            )
            return False
        if isinstance(index, bool) or not isinstance(index, int):
            logger.debug(
                "Ignored non-integer selection",
                extra={"selection": repr(index)},
            )
            return False
        if not 0 <= index < OPTION_COUNT:
            logger.debug(
                "Out-of-range selection forfeits the question",
                extra={"selection": index},
            )
            self._evaluate(None)
        else:
            self._evaluate(index)
        return True

    def _set_phase(self, phase: Phase) -> None:
        self._state.phase = phase
        self._listener.on_phase_changed(phase)

    def _set_input(self, enabled: bool) -> None:
        if self._input_enabled is enabled:
            return
        self._input_enabled = enabled
        self._listener.on_input_enabled(enabled)

    def _present(self) -> None:
        question = self._queue[self._state.current_index]
        self._set_phase(Phase.PRESENTING)
        self._state.selection = None
        self._state.time_remaining = self._settings.time_per_question
        self._set_input(True)
        self._listener.on_question_presented(
            question.question_text, question.options
        )
        self._listener.on_tick(self._state.time_remaining)
        self._set_phase(Phase.AWAITING_ANSWER)

    def _tick_answer(self, elapsed: float) -> None:
        self._state.time_remaining -= elapsed
        if self._state.time_remaining > 0:
            self._listener.on_tick(self._state.time_remaining)
            return
        self._state.time_remaining = 0.0
        self._listener.on_tick(0.0)
        logger.info(
            "Question timed out",
            extra={"question_index": self._state.current_index},
        )
        self._evaluate(None)

    def _evaluate(self, selection: Optional[int]) -> None:
        question = self._queue[self._state.current_index]
        self._set_input(False)
        self._set_phase(Phase.FEEDBACK)
        self._state.selection = selection
        correct = selection == question.correct_index
        if correct:
            self._state.score += self._settings.points_per_correct
        self._state.dwell_remaining = self._settings.feedback_dwell
        self._listener.on_feedback(
            question.correct_index, selection, self._state.score
        )
        logger.info(
            "Evaluated answer",
            extra={
                "question_index": self._state.current_index,
                "selection": selection,
                "correct": correct,
                "score": self._state.score,
            },
        )

    def _tick_feedback(self, elapsed: float) -> None:
        self._state.dwell_remaining -= elapsed
        if self._state.dwell_remaining > 0:
            return
        self._state.dwell_remaining = 0.0
        self._listener.on_options_reset()
        self._state.current_index += 1
        if self._state.current_index < len(self._queue):
            self._set_input(True)
            self._present()
        else:
            self._finish()

    def _finish(self) -> None:
        self._set_input(False)
        self._set_phase(Phase.FINISHED)
        self._state.selection = None
        self._state.time_remaining = 0.0
        self._listener.on_finished(self._state.score)
        self._state.restart_remaining = self._settings.restart_delay
        self._emit_restart_tick()
        logger.info(
            "Session finished",
            extra={
                "score": self._state.score,
                "questions": len(self._queue),
            },
        )

    def _emit_restart_tick(self) -> None:
        whole = math.ceil(self._state.restart_remaining)
        if whole <= 0 or whole == self._last_restart_tick:
            return
        self._last_restart_tick = whole
        self._listener.on_restart_tick(whole)

    def _tick_restart(self, elapsed: float) -> None:
        self._state.restart_remaining -= elapsed
        if self._state.restart_remaining > 0:
            self._emit_restart_tick()
            return
        self._state.restart_remaining = 0.0
        self._restart_fired = True
        self._superseded = True
        logger.info("Restart countdown elapsed")
        if self._on_restart is not None:
            self._on_restart()
