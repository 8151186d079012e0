"""Session listener that records every emitted event."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from timed_quiz.quiz.machine import Phase

Event = Tuple[Any, ...]


class RecordingListener:
    """Collect listener callbacks as ``(name, *args)`` tuples."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def on_phase_changed(self, phase: Phase) -> None:
        self.events.append(("phase", phase))

    def on_question_presented(self, text: str, options: Sequence[str]) -> None:
        self.events.append(("question", text, tuple(options)))

    def on_tick(self, remaining: float) -> None:
        self.events.append(("tick", remaining))

    def on_restart_tick(self, remaining: int) -> None:
        self.events.append(("restart_tick", remaining))

    def on_feedback(
        self, correct_index: int, chosen: Optional[int], score: int
    ) -> None:
        self.events.append(("feedback", correct_index, chosen, score))

    def on_options_reset(self) -> None:
        self.events.append(("reset",))

    def on_input_enabled(self, enabled: bool) -> None:
        self.events.append(("input", enabled))

    def on_finished(self, final_score: int) -> None:
        self.events.append(("finished", final_score))

    def named(self, name: str) -> List[Event]:
        return [event for event in self.events if event[0] == name]

    @property
    def phases(self) -> List[Phase]:
        return [event[1] for event in self.named("phase")]

    def clear(self) -> None:
        self.events.clear()
