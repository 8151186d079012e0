"""Textual front end for timed quiz sessions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Static

from .machine import OptionStyle, Phase, SessionListener, option_styles
from .records import OPTION_COUNT
from .runner import MonotonicClock, QuizRunner

FINISHED_TEXT = "Quiz Finished!"

RunnerFactory = Callable[[SessionListener], QuizRunner]


def _neutral_styles() -> List[OptionStyle]:
    return [OptionStyle.NEUTRAL] * OPTION_COUNT


@dataclass
class DisplayState:
    """Everything the screen shows, independent of any widget."""

    question: str = ""
    options: List[str] = field(default_factory=lambda: [""] * OPTION_COUNT)
    styles: List[OptionStyle] = field(default_factory=_neutral_styles)
    timer: str = ""
    score: int = 0
    status: str = ""
    input_enabled: bool = False
    options_visible: bool = True
    phase: Optional[Phase] = None


class DisplayModel:
    """Session listener that folds emitted events into a DisplayState."""

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self.state = DisplayState()
        self._on_change = on_change

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def on_phase_changed(self, phase: Phase) -> None:
        self.state.phase = phase
        if phase is Phase.PRESENTING:
            self.state.options_visible = True
            self.state.status = ""
        self._changed()

    def on_question_presented(self, text: str, options: Sequence[str]) -> None:
        self.state.question = text
        self.state.options = list(options)
        self.state.styles = _neutral_styles()
        self._changed()

    def on_tick(self, remaining: float) -> None:
        self.state.timer = str(math.ceil(max(remaining, 0.0)))
        self._changed()

    def on_restart_tick(self, remaining: int) -> None:
        self.state.timer = f"Restarting in {remaining}"
        self._changed()

    def on_feedback(
        self, correct_index: int, chosen: Optional[int], score: int
    ) -> None:
        self.state.styles = list(option_styles(correct_index, chosen))
        self.state.score = score
        if chosen is None:
            self.state.status = "Time's up!"
        elif chosen == correct_index:
            self.state.status = "Correct!"
        else:
            self.state.status = "Wrong!"
        self._changed()

    def on_options_reset(self) -> None:
        self.state.styles = _neutral_styles()
        self._changed()

    def on_input_enabled(self, enabled: bool) -> None:
        self.state.input_enabled = enabled
        self._changed()

    def on_finished(self, final_score: int) -> None:
        self.state.question = FINISHED_TEXT
        self.state.timer = ""
        self.state.score = final_score
        self.state.status = f"Final score: {final_score}"
        self.state.options_visible = False
        self._changed()


class QuizApp(App):
    CSS = """
#header { height: 1; }
#score { width: 1fr; }
#timer { width: auto; }
#question { padding: 1 2; text-style: bold; }
#options Button { width: 100%; margin: 0 2; }
#options Button.correct { background: green; }
#options Button.wrong { background: red; }
#status { padding: 1 2; color: $text-muted; }
"""
    BINDINGS = [
        ("1", "choose(0)", "Option 1"),
        ("2", "choose(1)", "Option 2"),
        ("3", "choose(2)", "Option 3"),
        ("4", "choose(3)", "Option 4"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        runner_factory: RunnerFactory,
        *,
        tick_interval: float = 0.1,
        clock: Optional[MonotonicClock] = None,
    ) -> None:
        super().__init__()
        self.model = DisplayModel(on_change=self._sync_widgets)
        self.runner = runner_factory(self.model)
        self._tick_clock = clock or MonotonicClock()
        self._tick_interval = tick_interval
        self._view_ready = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="header"):
            yield Static("", id="score")
            yield Static("", id="timer")
        yield Static("", id="question")
        with Vertical(id="options"):
            for index in range(OPTION_COUNT):
                yield Button("", id=f"option-{index}")
        yield Static("", id="status")

    def on_mount(self) -> None:
        self._view_ready = True
        self.runner.start()
        self._sync_widgets()
        self._tick_clock.reset()
        self.set_interval(self._tick_interval, self.advance_clock)

    def advance_clock(self) -> None:
        self.runner.tick(self._tick_clock.elapsed())

    def action_choose(self, index: int) -> None:
        self.runner.submit_selection(index)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("option-"):
            self.action_choose(int(bid.rsplit("-", 1)[-1]))

    def _sync_widgets(self) -> None:
        if not self._view_ready:
            return
        state = self.model.state
        self.query_one("#score", Static).update(f"Score: {state.score}")
        self.query_one("#timer", Static).update(state.timer)
        # Bank text is shown verbatim, never parsed as markup.
        self.query_one("#question", Static).update(Text(state.question))
        self.query_one("#status", Static).update(state.status)
        for index in range(OPTION_COUNT):
            button = self.query_one(f"#option-{index}", Button)
            button.label = Text(state.options[index])
            button.disabled = not state.input_enabled
            button.display = state.options_visible
            style = state.styles[index]
            button.set_class(style is OptionStyle.CORRECT, "correct")
            button.set_class(style is OptionStyle.WRONG, "wrong")
